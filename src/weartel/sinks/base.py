"""Abstract base class for telemetry sinks.

A sink is the outbound boundary of the pipeline: it receives one
AggregateRecord per channel per flush and is responsible for
serialization and transport. The scheduler awaits publish() once per
record, so implementations should hand slow I/O off the event loop.
"""

from abc import ABC, abstractmethod
from typing import Any

from weartel.models.base import AggregateRecord


class TelemetrySink(ABC):
    """Base class for record sinks.

    Class Attributes:
        name: Identifier used in config (``sink.type``) and log messages

    Example:
        class PrintSink(TelemetrySink):
            name = "print"

            async def publish(self, record: AggregateRecord) -> None:
                print(record.to_payload())
    """

    name: str = "unnamed_sink"

    def __init__(self) -> None:
        """Initialize the sink with default state."""
        self._config: dict[str, Any] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        """Whether close() has been called."""
        return self._closed

    def initialize(self, config: dict[str, Any] | None = None) -> None:
        """Apply sink-specific configuration.

        Args:
            config: Sink configuration section
        """
        self._config = config or {}

    @abstractmethod
    async def publish(self, record: AggregateRecord) -> None:
        """Persist or transmit one aggregate record.

        Args:
            record: The record produced by a flush

        Raises:
            Exception: Delivery failures propagate to the scheduler, which
                reports them and drops the record
        """
        ...

    async def close(self) -> None:
        """Release resources held by the sink."""
        self._closed = True

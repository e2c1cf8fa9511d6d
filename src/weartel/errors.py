"""Exception types for the telemetry pipeline.

None of these are fatal to the process. Each is isolated to the channel
or record it names and is reported to observers rather than propagated
through the collection loop.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from weartel.models.base import AggregateRecord, Channel


class TelemetryError(Exception):
    """Base exception for telemetry pipeline errors."""

    pass


class SensorUnavailableError(TelemetryError):
    """A channel has no hardware backing on this device.

    Attributes:
        channel: The channel that will never produce samples
    """

    def __init__(self, channel: "Channel") -> None:
        self.channel = channel
        super().__init__(f"Sensor for channel '{channel.value}' is not available")


class PublishError(TelemetryError):
    """The sink failed to deliver one aggregate record.

    The record's samples have already been drained, so the data is lost.

    Attributes:
        record: The record that could not be delivered
        cause: The exception raised by the sink
    """

    def __init__(self, record: "AggregateRecord", cause: BaseException) -> None:
        self.record = record
        self.cause = cause
        super().__init__(
            f"Failed to publish '{record.channel.value}' record: "
            f"{type(cause).__name__}: {cause!s}"
        )


class PermissionDeniedError(TelemetryError):
    """Collection was requested without the body-sensor access grant."""

    pass

"""Collection session: the owned telemetry pipeline.

A session wires a sensor source to a TelemetryScheduler and its sink and
gives the whole pipeline one create/start/stop/close lifecycle that does
not depend on any UI framework.

Lifecycle:
1. Create: CollectionSession.from_config(config, source)
2. Start: permission gate, missing sensors reported, scheduler started,
   source subscribed
3. Stop: source unsubscribed, then scheduler stopped (terminal flush)
4. Close: stop, then the sink is closed; the session cannot restart
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging
import threading
from typing import Any

from rich.console import Console

from weartel.collectors.scheduler import SchedulerStats, TelemetryScheduler
from weartel.config import Config, SinkConfig
from weartel.errors import PermissionDeniedError
from weartel.models.base import AggregateRecord, Channel
from weartel.sensors.base import SensorSource
from weartel.sinks import ConsoleSink, JsonLinesSink, TelemetrySink

logger = logging.getLogger(__name__)

PermissionCheck = Callable[[], bool]


def build_sink(config: SinkConfig, console: Console | None = None) -> TelemetrySink:
    """Create the sink described by the sink config section.

    Args:
        config: Sink configuration
        console: Rich console for the console sink

    Returns:
        An initialized sink

    Raises:
        ValueError: If the sink type is not recognized
    """
    sink: TelemetrySink
    if config.type == "console":
        sink = ConsoleSink(console=console, pretty_print=config.pretty_print)
    elif config.type == "jsonl":
        sink = JsonLinesSink(config.path, root_key=config.root_key)
    else:
        raise ValueError(f"Unknown sink type: {config.type}. Available: console, jsonl")

    sink.initialize(config.model_dump())
    return sink


class CollectionSession:
    """Owns a sensor source, a scheduler and the scheduler's sink.

    Example:
        session = CollectionSession.from_config(config, SimulatedSensorSource())
        async with session:
            await asyncio.sleep(10)
    """

    def __init__(
        self,
        scheduler: TelemetryScheduler,
        source: SensorSource,
        permission_check: PermissionCheck | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            scheduler: Scheduler that buffers and flushes samples
            source: Sensor source feeding the scheduler
            permission_check: Returns True when body-sensor access is
                granted (default: always granted)
        """
        self._scheduler = scheduler
        self._source = source
        self._permission_check = permission_check
        self._closed = False
        self._invalid_samples = 0
        self._invalid_lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        config: Config,
        source: SensorSource,
        sink: TelemetrySink | None = None,
        permission_check: PermissionCheck | None = None,
        console: Console | None = None,
    ) -> CollectionSession:
        """Create a session from configuration.

        Args:
            config: Validated configuration
            source: Sensor source feeding the pipeline
            sink: Sink to publish to (default: built from config.sink)
            permission_check: Body-sensor permission gate
            console: Rich console for the console sink

        Returns:
            A session in the idle state
        """
        scheduler = TelemetryScheduler(
            sink or build_sink(config.sink, console=console),
            flush_interval_millis=config.flush_interval_millis,
            channels=config.channels.enabled_channels(),
        )
        return cls(scheduler, source, permission_check=permission_check)

    @property
    def scheduler(self) -> TelemetryScheduler:
        """Get the session's scheduler."""
        return self._scheduler

    @property
    def source(self) -> SensorSource:
        """Get the session's sensor source."""
        return self._source

    @property
    def running(self) -> bool:
        """Check if the session is collecting."""
        return self._scheduler.running

    @property
    def closed(self) -> bool:
        """Check if the session has been closed."""
        return self._closed

    async def start(self) -> None:
        """Start collecting.

        Does nothing if already collecting.

        Raises:
            PermissionDeniedError: If the permission check fails
            RuntimeError: If the session has been closed
            Exception: Whatever the source raises from subscribe(); the
                scheduler is stopped again first
        """
        if self._closed:
            raise RuntimeError("Session is closed")
        if self._scheduler.running:
            return

        if self._permission_check is not None and not self._permission_check():
            raise PermissionDeniedError("Body sensor permission is required to collect telemetry")

        available = self._source.available_channels()
        for channel in Channel:
            if channel in self._scheduler.enabled_channels and channel not in available:
                self._scheduler.mark_unavailable(channel)

        await self._scheduler.start()
        try:
            self._source.subscribe(self._on_sample)
        except Exception:
            await self._scheduler.stop()
            raise

    async def stop(self) -> None:
        """Stop collecting and flush what was buffered.

        Does nothing if not collecting.
        """
        if not self._scheduler.running:
            return

        # Source threads are joined off the event loop
        await asyncio.to_thread(self._source.unsubscribe)
        await self._scheduler.stop()

    async def close(self) -> None:
        """Stop collecting and close the sink."""
        if self._closed:
            return
        await self.stop()
        await self._scheduler.sink.close()
        self._closed = True

    async def flush_now(self) -> list[AggregateRecord]:
        """Flush immediately.

        Returns:
            Records the sink accepted
        """
        return await self._scheduler.flush_now()

    def get_stats(self) -> SchedulerStats:
        """Get the scheduler's statistics."""
        return self._scheduler.get_stats()

    @property
    def invalid_samples(self) -> int:
        """Number of readings the scheduler rejected as malformed."""
        return self._invalid_samples

    def _on_sample(self, channel: Channel, value: Any) -> None:
        """Sensor callback; malformed readings are logged and dropped."""
        try:
            self._scheduler.on_sample(channel, value)
        except (TypeError, ValueError) as e:
            with self._invalid_lock:
                self._invalid_samples += 1
            logger.warning("Ignoring malformed '%s' reading: %s", channel.value, e)

    async def __aenter__(self) -> CollectionSession:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

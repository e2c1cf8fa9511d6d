"""Fixed-interval flush scheduler for buffered sensor telemetry.

This module provides the scheduler that owns one SampleBuffer per channel,
routes incoming samples into them while collecting, and on every tick
drains each buffer, averages it, and hands the result to a sink.

Key features:
- Two states (idle, collecting) with idempotent start/stop
- Non-overlapping ticks: the next tick is scheduled only after the current
  flush, including sink calls, has completed
- Terminal flush on stop so the last partial interval is not lost
- At-most-once delivery: publish failures are reported, never retried
"""

import asyncio
from collections.abc import Callable, Iterable, Sequence
import contextlib
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
import logging
import threading
from typing import Any

from weartel.collectors.aggregate import aggregate
from weartel.collectors.buffer import SampleBuffer
from weartel.errors import PublishError, SensorUnavailableError, TelemetryError
from weartel.models.base import AggregateRecord, Channel, SampleValue
from weartel.sinks.base import TelemetrySink

logger = logging.getLogger(__name__)

DEFAULT_FLUSH_INTERVAL_MILLIS = 1000

# Observer signatures
ErrorCallback = Callable[[TelemetryError], Any]
RecordCallback = Callable[[AggregateRecord], Any]


def _utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


def coerce_sample(channel: Channel, value: Any) -> SampleValue:
    """Normalize a raw sensor reading to the channel's value shape.

    Platform sensor events deliver a values array; heart rate uses its
    first element and motion channels its first three.

    Args:
        channel: Channel the reading belongs to
        value: Scalar or sequence of numbers

    Returns:
        A float for heart rate, an (x, y, z) tuple for motion channels

    Raises:
        ValueError: If the reading has too few components
    """
    if channel.is_vector:
        if not isinstance(value, Sequence) or isinstance(value, str) or len(value) < 3:
            raise ValueError(f"Channel '{channel.value}' expects (x, y, z), got {value!r}")
        return (float(value[0]), float(value[1]), float(value[2]))

    if isinstance(value, Sequence) and not isinstance(value, str):
        if not value:
            raise ValueError(f"Channel '{channel.value}' got an empty reading")
        return float(value[0])
    return float(value)


class SchedulerState(str, Enum):
    """Collection states of the scheduler."""

    IDLE = "idle"
    COLLECTING = "collecting"


@dataclass
class SchedulerStats:
    """Statistics about the scheduler's state and activity.

    Attributes:
        state: Current scheduler state
        flush_interval_millis: Tick cadence in milliseconds
        ticks: Timer ticks fired since creation
        flushes: Flushes performed (ticks, flush_now and terminal flushes)
        records_published: Records the sink accepted
        publish_failures: Records the sink rejected (dropped)
        samples_accepted: Samples routed into a buffer
        samples_rejected: Samples ignored (idle, disabled or unavailable)
        unavailable_channels: Channels without sensor hardware
    """

    state: SchedulerState = SchedulerState.IDLE
    flush_interval_millis: int = DEFAULT_FLUSH_INTERVAL_MILLIS
    ticks: int = 0
    flushes: int = 0
    records_published: int = 0
    publish_failures: int = 0
    samples_accepted: int = 0
    samples_rejected: int = 0
    unavailable_channels: tuple[Channel, ...] = ()


class TelemetryScheduler:
    """Buffers samples per channel and flushes aggregates on a fixed clock.

    on_sample() may be called from any thread. start(), stop() and
    flush_now() are coroutines and must run on the scheduler's event loop.

    Example:
        scheduler = TelemetryScheduler(sink, flush_interval_millis=1000)
        await scheduler.start()
        scheduler.on_sample(Channel.HEART_RATE, 61.0)  # from a sensor thread
        # ... later ...
        await scheduler.stop()  # cancels the timer, then flushes once more
    """

    def __init__(
        self,
        sink: TelemetrySink,
        flush_interval_millis: int = DEFAULT_FLUSH_INTERVAL_MILLIS,
        channels: Iterable[Channel] | None = None,
    ) -> None:
        """Initialize the scheduler in the idle state.

        Args:
            sink: Destination for aggregate records
            flush_interval_millis: Tick cadence in milliseconds (must be positive)
            channels: Channels to collect (default: all)

        Raises:
            ValueError: If flush_interval_millis is not positive
        """
        if flush_interval_millis <= 0:
            raise ValueError("flush_interval_millis must be positive")

        self._sink = sink
        self._flush_interval_millis = flush_interval_millis
        self._enabled: frozenset[Channel] = frozenset(channels if channels is not None else Channel)
        self._unavailable: set[Channel] = set()
        self._buffers: dict[Channel, SampleBuffer[SampleValue]] = {
            channel: SampleBuffer(channel.value) for channel in Channel
        }

        self._state = SchedulerState.IDLE
        self._task: asyncio.Task[None] | None = None
        self._stop_event: asyncio.Event | None = None
        self._flush_lock = asyncio.Lock()
        self._transition_lock = asyncio.Lock()

        self._error_callbacks: list[ErrorCallback] = []
        self._record_callbacks: list[RecordCallback] = []

        # Statistics
        self._ticks = 0
        self._flushes = 0
        self._records_published = 0
        self._publish_failures = 0
        self._samples_rejected = 0
        self._rejected_lock = threading.Lock()

    @property
    def state(self) -> SchedulerState:
        """Get the current scheduler state."""
        return self._state

    @property
    def running(self) -> bool:
        """Check if the scheduler is collecting."""
        return self._state is SchedulerState.COLLECTING

    @property
    def flush_interval_millis(self) -> int:
        """Get the tick cadence in milliseconds."""
        return self._flush_interval_millis

    @property
    def sink(self) -> TelemetrySink:
        """Get the sink records are published to."""
        return self._sink

    @property
    def enabled_channels(self) -> frozenset[Channel]:
        """Get the channels this scheduler collects."""
        return self._enabled

    def get_buffer(self, channel: Channel) -> SampleBuffer[SampleValue]:
        """Get a channel's buffer.

        Args:
            channel: The channel

        Returns:
            The SampleBuffer for that channel
        """
        return self._buffers[channel]

    def add_error_callback(self, callback: ErrorCallback) -> None:
        """Add an observer for publish failures and unavailable sensors.

        Args:
            callback: Function(error) called with a TelemetryError
        """
        self._error_callbacks.append(callback)

    def remove_error_callback(self, callback: ErrorCallback) -> None:
        """Remove a previously added error observer."""
        if callback in self._error_callbacks:
            self._error_callbacks.remove(callback)

    def add_record_callback(self, callback: RecordCallback) -> None:
        """Add an observer for successfully published records.

        Args:
            callback: Function(record) called after the sink accepts a record
        """
        self._record_callbacks.append(callback)

    def remove_record_callback(self, callback: RecordCallback) -> None:
        """Remove a previously added record observer."""
        if callback in self._record_callbacks:
            self._record_callbacks.remove(callback)

    def mark_unavailable(self, channel: Channel) -> None:
        """Record that a channel has no sensor hardware.

        The channel's samples are ignored from now on. The condition is
        reported to error observers only the first time.

        Args:
            channel: The channel without hardware backing
        """
        if channel in self._unavailable:
            return
        self._unavailable.add(channel)
        logger.warning("Sensor for channel '%s' is not available", channel.value)
        self._report_error(SensorUnavailableError(channel))

    def is_available(self, channel: Channel) -> bool:
        """Check whether a channel has not been marked unavailable."""
        return channel not in self._unavailable

    def on_sample(self, channel: Channel, value: Any) -> bool:
        """Route one sensor reading into its channel buffer.

        Ignored while idle, so stray callbacks that arrive after stop()
        never reach a later session.

        Args:
            channel: Channel the reading belongs to
            value: Scalar (heart rate) or (x, y, z) reading

        Returns:
            True if the sample was buffered

        Raises:
            ValueError: If the reading does not fit the channel
        """
        if (
            self._state is not SchedulerState.COLLECTING
            or channel not in self._enabled
            or channel in self._unavailable
        ):
            with self._rejected_lock:
                self._samples_rejected += 1
            return False

        self._buffers[channel].append(coerce_sample(channel, value))
        return True

    async def start(self) -> None:
        """Start collecting and schedule the first tick.

        Discards any samples left over from a previous session. Waits for
        a stop() in progress to finish first. Does nothing if already
        collecting.
        """
        async with self._transition_lock:
            if self._state is SchedulerState.COLLECTING:
                return

            for buffer in self._buffers.values():
                discarded = buffer.clear()
                if discarded:
                    logger.debug("Discarded %d stale samples from '%s'", discarded, buffer.name)

            self._stop_event = asyncio.Event()
            self._state = SchedulerState.COLLECTING
            self._task = asyncio.create_task(
                self._tick_loop(self._stop_event), name="telemetry-tick"
            )
            logger.info(
                "Telemetry collection started (interval=%dms, channels=%s)",
                self._flush_interval_millis,
                ",".join(sorted(c.value for c in self._enabled - self._unavailable)),
            )

    async def stop(self) -> None:
        """Stop collecting, cancel the timer and flush once more.

        No tick fires after this returns. A tick that is already flushing
        is allowed to finish first. A call that overlaps another stop()
        returns only after that stop's terminal flush. Does nothing if
        already idle.
        """
        async with self._transition_lock:
            if self._state is SchedulerState.IDLE:
                return

            self._state = SchedulerState.IDLE
            if self._stop_event is not None:
                self._stop_event.set()

            task, self._task = self._task, None
            if task is not None and not task.done():
                await task

            await self._flush()

            # Samples that raced the terminal drain belong to no session
            for buffer in self._buffers.values():
                discarded = buffer.clear()
                if discarded:
                    logger.debug("Dropped %d late samples from '%s'", discarded, buffer.name)

            logger.info("Telemetry collection stopped")

    async def flush_now(self) -> list[AggregateRecord]:
        """Flush all channels immediately, outside the regular cadence.

        Returns:
            Records the sink accepted (empty if idle)
        """
        if self._state is not SchedulerState.COLLECTING:
            return []
        return await self._flush()

    def get_stats(self) -> SchedulerStats:
        """Get scheduler statistics.

        Returns:
            SchedulerStats with current state and counters
        """
        accepted = sum(b.get_stats().total_appended for b in self._buffers.values())
        return SchedulerStats(
            state=self._state,
            flush_interval_millis=self._flush_interval_millis,
            ticks=self._ticks,
            flushes=self._flushes,
            records_published=self._records_published,
            publish_failures=self._publish_failures,
            samples_accepted=accepted,
            samples_rejected=self._samples_rejected,
            unavailable_channels=tuple(c for c in Channel if c in self._unavailable),
        )

    async def _tick_loop(self, stop_event: asyncio.Event) -> None:
        """Fire a flush every interval until stopped.

        The wait is parked on the stop event, so stop() wakes it early.

        Args:
            stop_event: Event set by stop()
        """
        interval = self._flush_interval_millis / 1000

        while self._state is SchedulerState.COLLECTING:
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(stop_event.wait(), timeout=interval)

            if stop_event.is_set() or self._state is not SchedulerState.COLLECTING:
                break

            self._ticks += 1
            await self._flush()

    async def _flush(self) -> list[AggregateRecord]:
        """Drain every channel, aggregate, and publish.

        Each channel is handled independently: an empty buffer contributes
        nothing and a failed publish does not affect the other channels.

        Returns:
            Records the sink accepted
        """
        async with self._flush_lock:
            timestamp = _utcnow()
            published: list[AggregateRecord] = []

            for channel in Channel:
                values = self._buffers[channel].drain()
                value = aggregate(channel, values)
                if value is None:
                    continue

                record = AggregateRecord(
                    channel=channel,
                    timestamp=timestamp,
                    value=value,
                    sample_count=len(values),
                )
                if await self._publish(record):
                    published.append(record)

            self._flushes += 1
            return published

    async def _publish(self, record: AggregateRecord) -> bool:
        """Hand one record to the sink.

        Args:
            record: The record to deliver

        Returns:
            True if the sink accepted the record
        """
        try:
            await self._sink.publish(record)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._publish_failures += 1
            logger.warning(
                "Dropping '%s' record after publish failure: %s: %s",
                record.channel.value,
                type(e).__name__,
                e,
            )
            self._report_error(PublishError(record, e))
            return False

        self._records_published += 1
        for callback in self._record_callbacks:
            with contextlib.suppress(Exception):
                callback(record)
        return True

    def _report_error(self, error: TelemetryError) -> None:
        """Deliver an error to every observer (observer failures are ignored)."""
        for callback in self._error_callbacks:
            with contextlib.suppress(Exception):
                callback(error)

"""Buffered telemetry collection for weartel.

This module provides the core pipeline:

- SampleBuffer: Per-channel buffer with thread-safe append and atomic drain
- aggregate: Mean of scalar readings, componentwise mean of (x, y, z) readings
- TelemetryScheduler: Fixed-interval flush loop publishing to a sink
"""

from weartel.collectors.aggregate import aggregate, mean_scalar, mean_vector
from weartel.collectors.buffer import BufferStats, SampleBuffer
from weartel.collectors.scheduler import (
    DEFAULT_FLUSH_INTERVAL_MILLIS,
    SchedulerState,
    SchedulerStats,
    TelemetryScheduler,
    coerce_sample,
)

__all__ = [
    "BufferStats",
    "DEFAULT_FLUSH_INTERVAL_MILLIS",
    "SampleBuffer",
    "SchedulerState",
    "SchedulerStats",
    "TelemetryScheduler",
    "aggregate",
    "coerce_sample",
    "mean_scalar",
    "mean_vector",
]

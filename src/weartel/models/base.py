"""Base Pydantic models for weartel data types.

This module defines the data models shared by the telemetry pipeline:
- Channel: The three body-sensor streams a wearable reports
- SensorAccuracy: Accuracy levels reported by the platform sensor layer
- Vector3: (x, y, z) readings for motion channels
- AggregateRecord: One averaged value per channel per flush
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

Vector3 = tuple[float, float, float]
"""Type alias for a 3-axis reading (gyroscope, accelerometer)."""

SampleValue = float | Vector3
"""A raw reading: scalar for heart rate, Vector3 for motion channels."""

PAYLOAD_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


class Channel(str, Enum):
    """Sensor data streams collected by the pipeline.

    Attributes:
        HEART_RATE: Beats per minute, one scalar per reading
        GYROSCOPE: Angular velocity, (x, y, z) in rad/s
        ACCELEROMETER: Acceleration, (x, y, z) in m/s^2
    """

    HEART_RATE = "heart_rate"
    GYROSCOPE = "gyroscope"
    ACCELEROMETER = "accelerometer"

    @property
    def is_vector(self) -> bool:
        """Whether readings on this channel are 3-tuples."""
        return self is not Channel.HEART_RATE


class SensorAccuracy(str, Enum):
    """Accuracy levels a sensor can report while collecting.

    UNRELIABLE and LOW are surfaced as warnings; MEDIUM and HIGH are normal.
    """

    UNRELIABLE = "unreliable"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AggregateRecord(BaseModel):
    """Aggregated value for one channel over one flush interval.

    Created only inside a flush and handed straight to the sink.

    Attributes:
        channel: Channel the samples came from
        timestamp: Flush time (UTC); samples carry no capture timestamp
        value: Mean heart rate, or componentwise mean for motion channels
        sample_count: Number of samples that were averaged
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    channel: Channel
    timestamp: datetime = Field(default_factory=_utcnow)
    value: float | Vector3
    sample_count: int = Field(default=1, ge=1)

    @model_validator(mode="after")
    def check_value_shape(self) -> "AggregateRecord":
        """Ensure the value shape matches the channel kind."""
        if self.channel.is_vector and not isinstance(self.value, tuple):
            raise ValueError(f"Channel '{self.channel.value}' requires an (x, y, z) value")
        if not self.channel.is_vector and isinstance(self.value, tuple):
            raise ValueError(f"Channel '{self.channel.value}' requires a scalar value")
        return self

    def format_timestamp(self) -> str:
        """Render the flush timestamp with millisecond precision."""
        millis = self.timestamp.microsecond // 1000
        return f"{self.timestamp.strftime(PAYLOAD_TIMESTAMP_FORMAT)}.{millis:03d}"

    def to_payload(self) -> dict[str, Any]:
        """Build the keyed record a sink persists.

        Heart rate carries a single ``value`` field; motion channels carry
        ``x``, ``y`` and ``z`` fields instead.

        Returns:
            Dictionary ready for JSON serialization
        """
        payload: dict[str, Any] = {
            "timestamp": self.format_timestamp(),
            "type": self.channel.value,
        }
        if isinstance(self.value, tuple):
            payload["x"], payload["y"], payload["z"] = self.value
        else:
            payload["value"] = self.value
        return payload

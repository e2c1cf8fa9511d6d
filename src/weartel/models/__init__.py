"""Pydantic data models for weartel.

- Channel: Sensor stream identifiers
- SensorAccuracy: Platform-reported sensor accuracy
- AggregateRecord: Averaged value handed to a sink on each flush
- Vector3, SampleValue: Type aliases for raw readings
"""

from weartel.models.base import (
    AggregateRecord,
    Channel,
    SampleValue,
    SensorAccuracy,
    Vector3,
)

__all__ = [
    "AggregateRecord",
    "Channel",
    "SampleValue",
    "SensorAccuracy",
    "Vector3",
]

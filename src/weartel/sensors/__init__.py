"""Sensor-event sources feeding the telemetry pipeline.

- SensorSource: Abstract base class for sources
- SimulatedSensorSource: Thread-driven synthetic wearable sensors
- report_accuracy: Logs accuracy changes reported by the sensor layer
"""

from weartel.sensors.base import SampleCallback, SensorSource, report_accuracy
from weartel.sensors.simulated import DEFAULT_RATES_HZ, SimulatedSensorSource

__all__ = [
    "DEFAULT_RATES_HZ",
    "SampleCallback",
    "SensorSource",
    "SimulatedSensorSource",
    "report_accuracy",
]

"""weartel - buffered telemetry pipeline for wearable body sensors."""

__version__ = "0.1.0"

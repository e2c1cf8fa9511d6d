"""Abstract base class for sensor-event sources.

A sensor source is the inbound boundary of the pipeline. It reports which
channels have hardware backing and, while subscribed, delivers every
reading to a callback, usually from its own thread(s).
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
import logging
from typing import Any

from weartel.models.base import Channel, SensorAccuracy

logger = logging.getLogger(__name__)

# Callback signature: (channel, raw reading)
SampleCallback = Callable[[Channel, Any], Any]


def report_accuracy(channel: Channel, accuracy: SensorAccuracy) -> None:
    """Surface a sensor accuracy change.

    Unreliable and low accuracy are logged as warnings; other levels
    only at debug.

    Args:
        channel: Channel whose sensor changed accuracy
        accuracy: The new accuracy level
    """
    if accuracy is SensorAccuracy.UNRELIABLE:
        logger.warning("Sensor data for '%s' is unreliable", channel.value)
    elif accuracy is SensorAccuracy.LOW:
        logger.warning("Sensor accuracy for '%s' is low", channel.value)
    else:
        logger.debug("Sensor accuracy for '%s' is %s", channel.value, accuracy.value)


class SensorSource(ABC):
    """Base class for sensor-event sources.

    Class Attributes:
        name: Identifier used in log messages
    """

    name: str = "unnamed_source"

    def __init__(self) -> None:
        """Initialize the source in the unsubscribed state."""
        self._callback: SampleCallback | None = None

    @property
    def subscribed(self) -> bool:
        """Whether a callback is currently receiving readings."""
        return self._callback is not None

    @abstractmethod
    def available_channels(self) -> frozenset[Channel]:
        """Return the channels this device has sensors for."""
        ...

    @abstractmethod
    def subscribe(self, callback: SampleCallback) -> None:
        """Start delivering readings to callback.

        Args:
            callback: Function(channel, value) invoked for every reading
        """
        ...

    @abstractmethod
    def unsubscribe(self) -> None:
        """Stop delivering readings. Safe to call when not subscribed."""
        ...

    def accuracy_changed(self, channel: Channel, accuracy: SensorAccuracy) -> None:
        """Handle an accuracy change reported by the sensor layer."""
        report_accuracy(channel, accuracy)

"""Simulated wearable sensors.

Produces plausible heart-rate, gyroscope and accelerometer readings on
background threads, one per channel, at configurable rates. Used by the
command-line driver and for exercising the pipeline without hardware.
"""

from collections.abc import Iterable, Mapping
import logging
import random
import threading

from weartel.models.base import Channel, SampleValue, SensorAccuracy
from weartel.sensors.base import SampleCallback, SensorSource

logger = logging.getLogger(__name__)

# Heart rate at the platform's normal delay, motion at its game delay
DEFAULT_RATES_HZ: dict[Channel, float] = {
    Channel.HEART_RATE: 1.0,
    Channel.GYROSCOPE: 50.0,
    Channel.ACCELEROMETER: 50.0,
}

STANDARD_GRAVITY = 9.80665


class SimulatedSensorSource(SensorSource):
    """Sensor source backed by generator threads.

    Example:
        source = SimulatedSensorSource(missing=[Channel.GYROSCOPE], seed=1)
        source.subscribe(scheduler.on_sample)
        # ... later ...
        source.unsubscribe()
    """

    name = "simulated"

    def __init__(
        self,
        rates_hz: Mapping[Channel, float] | None = None,
        missing: Iterable[Channel] = (),
        accuracy: SensorAccuracy = SensorAccuracy.HIGH,
        seed: int | None = None,
    ) -> None:
        """Initialize the simulated device.

        Args:
            rates_hz: Readings per second per channel (defaults per channel)
            missing: Channels the simulated device has no sensor for
            accuracy: Accuracy reported for each channel on subscribe
            seed: Random seed for reproducible readings

        Raises:
            ValueError: If a rate is not positive
        """
        super().__init__()
        self._rates = {**DEFAULT_RATES_HZ, **(rates_hz or {})}
        for channel, rate in self._rates.items():
            if rate <= 0:
                raise ValueError(f"Rate for '{channel.value}' must be positive")

        self._missing = frozenset(missing)
        self._accuracy = accuracy
        self._random = random.Random(seed)
        self._random_lock = threading.Lock()
        self._heart_rate = 70.0
        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []

    def available_channels(self) -> frozenset[Channel]:
        """Return every channel not configured as missing."""
        return frozenset(c for c in Channel if c not in self._missing)

    def rate_hz(self, channel: Channel) -> float:
        """Get the reading rate for a channel."""
        return self._rates[channel]

    def read(self, channel: Channel) -> SampleValue:
        """Generate one reading for a channel.

        Heart rate follows a bounded random walk; motion channels are
        noise around rest (gravity on the accelerometer z axis).
        """
        with self._random_lock:
            rng = self._random
            if channel is Channel.HEART_RATE:
                self._heart_rate = min(180.0, max(45.0, self._heart_rate + rng.gauss(0, 1.5)))
                return round(self._heart_rate, 1)
            if channel is Channel.GYROSCOPE:
                return (rng.gauss(0, 0.05), rng.gauss(0, 0.05), rng.gauss(0, 0.05))
            return (rng.gauss(0, 0.2), rng.gauss(0, 0.2), STANDARD_GRAVITY + rng.gauss(0, 0.2))

    def subscribe(self, callback: SampleCallback) -> None:
        """Start one generator thread per available channel.

        Does nothing if already subscribed.
        """
        if self._callback is not None:
            return

        self._callback = callback
        self._stop_event = threading.Event()
        self._threads = []

        for channel in sorted(self.available_channels(), key=lambda c: c.value):
            self.accuracy_changed(channel, self._accuracy)
            thread = threading.Thread(
                target=self._run,
                args=(channel, self._stop_event),
                name=f"sensor-{channel.value}",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()

    def unsubscribe(self, timeout: float = 2.0) -> None:
        """Stop the generator threads and wait for them to exit.

        Args:
            timeout: Maximum seconds to wait per thread
        """
        if self._callback is None:
            return

        self._stop_event.set()
        for thread in self._threads:
            thread.join(timeout=timeout)
        self._threads = []
        self._callback = None

    def _run(self, channel: Channel, stop_event: threading.Event) -> None:
        """Generator loop for one channel."""
        period = 1.0 / self._rates[channel]

        while not stop_event.wait(period):
            callback = self._callback
            if callback is None:
                break
            try:
                callback(channel, self.read(channel))
            except Exception:
                logger.warning("Sample callback failed for '%s'", channel.value, exc_info=True)

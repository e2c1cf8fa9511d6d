"""Aggregation of drained sample sequences.

Pure functions with no locking: they operate on the detached list a
SampleBuffer.drain() returns.
"""

from collections.abc import Sequence

from weartel.models.base import Channel, SampleValue, Vector3


def mean_scalar(values: Sequence[float]) -> float:
    """Return the arithmetic mean of scalar readings.

    Raises:
        ValueError: If values is empty
    """
    if not values:
        raise ValueError("Cannot average an empty sequence")
    return float(sum(values)) / len(values)


def mean_vector(values: Sequence[Vector3]) -> Vector3:
    """Return the componentwise mean of (x, y, z) readings.

    Raises:
        ValueError: If values is empty
    """
    if not values:
        raise ValueError("Cannot average an empty sequence")
    sum_x = sum_y = sum_z = 0.0
    for x, y, z in values:
        sum_x += x
        sum_y += y
        sum_z += z
    count = len(values)
    return (sum_x / count, sum_y / count, sum_z / count)


def aggregate(channel: Channel, values: Sequence[SampleValue]) -> float | Vector3 | None:
    """Aggregate one channel's drained readings.

    Args:
        channel: Channel the readings belong to
        values: Readings returned by SampleBuffer.drain()

    Returns:
        The mean value, or None if there were no readings

    Raises:
        ValueError: If a reading's shape does not match the channel
    """
    if not values:
        return None

    if channel.is_vector:
        if any(not isinstance(v, tuple) or len(v) != 3 for v in values):
            raise ValueError(f"Channel '{channel.value}' expects (x, y, z) readings")
        return mean_vector(values)  # type: ignore[arg-type]

    if any(isinstance(v, tuple) for v in values):
        raise ValueError(f"Channel '{channel.value}' expects scalar readings")
    return mean_scalar(values)  # type: ignore[arg-type]

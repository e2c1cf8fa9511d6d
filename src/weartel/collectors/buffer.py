"""Per-channel sample buffer with thread-safe append and atomic drain.

Sensor callbacks append from their own threads while the flush loop
drains from the event loop thread, so the buffer is guarded by a
threading.Lock rather than an asyncio.Lock. The lock covers only the
append or the swap of the backing list; aggregation runs on the
detached list outside it.
"""

from dataclasses import dataclass
import threading
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass
class BufferStats:
    """Statistics about buffer state and usage.

    Attributes:
        current_size: Number of samples waiting for the next drain
        total_appended: Total samples ever appended
        total_drained: Total samples returned by drain()
        drain_count: Number of drain() calls
        total_discarded: Samples dropped by clear()
    """

    current_size: int = 0
    total_appended: int = 0
    total_drained: int = 0
    drain_count: int = 0
    total_discarded: int = 0


class SampleBuffer(Generic[T]):
    """Append-only sequence of readings for one channel between flushes.

    Each instance owns its own lock, so traffic on one channel never
    blocks another.

    Example:
        buffer = SampleBuffer[float]()
        buffer.append(61.0)
        values = buffer.drain()  # [61.0], buffer is now empty
    """

    def __init__(self, name: str = "") -> None:
        """Initialize an empty buffer.

        Args:
            name: Label used in stats and log messages
        """
        self.name = name
        self._items: list[T] = []
        self._lock = threading.Lock()

        # Statistics
        self._total_appended = 0
        self._total_drained = 0
        self._drain_count = 0
        self._total_discarded = 0

    def append(self, value: T) -> None:
        """Add one value to the tail of the buffer.

        Args:
            value: The reading to store
        """
        with self._lock:
            self._items.append(value)
            self._total_appended += 1

    def drain(self) -> list[T]:
        """Atomically remove and return every buffered value.

        The swap of the backing list is the linearization point: appends
        that acquired the lock first are returned here, later ones land in
        the fresh list for the next drain.

        Returns:
            List of values, oldest first (empty if nothing was buffered)
        """
        with self._lock:
            items, self._items = self._items, []
            self._drain_count += 1
            self._total_drained += len(items)
        return items

    def clear(self) -> int:
        """Discard all buffered values.

        Returns:
            Number of values discarded
        """
        with self._lock:
            discarded = len(self._items)
            self._items = []
            self._total_discarded += discarded
        return discarded

    def size(self) -> int:
        """Get the current number of buffered values."""
        with self._lock:
            return len(self._items)

    def is_empty(self) -> bool:
        """Check if the buffer holds no values."""
        return self.size() == 0

    def get_stats(self) -> BufferStats:
        """Get buffer statistics.

        Returns:
            BufferStats with current state and usage info
        """
        with self._lock:
            return BufferStats(
                current_size=len(self._items),
                total_appended=self._total_appended,
                total_drained=self._total_drained,
                drain_count=self._drain_count,
                total_discarded=self._total_discarded,
            )

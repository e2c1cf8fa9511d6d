"""JSON Lines file sink.

Each published record is appended to a file as one line holding the
storage path the record is keyed under and its payload, mirroring a
realtime-database push under a root node (``wear_data`` by default).
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
import secrets
import threading
import time
from typing import IO, Any

from weartel.formatters.json_formatter import JsonFormatter
from weartel.models.base import AggregateRecord
from weartel.sinks.base import TelemetrySink

logger = logging.getLogger(__name__)

PUSH_KEY_ALPHABET = "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"


class PushKeyGenerator:
    """Generates chronologically sortable 20-character record keys.

    The first 8 characters encode the millisecond timestamp; the last 12
    are random. Keys generated within the same millisecond increment the
    random part so they still sort in creation order.
    """

    def __init__(self) -> None:
        self._last_time = -1
        self._last_random = [0] * 12
        self._lock = threading.Lock()

    def generate(self, now_millis: int | None = None) -> str:
        """Return a new key.

        Args:
            now_millis: Timestamp to encode (default: current time)
        """
        now = int(time.time() * 1000) if now_millis is None else now_millis

        with self._lock:
            if now == self._last_time:
                # Increment the random suffix, carrying into earlier digits
                i = 11
                while i >= 0 and self._last_random[i] == 63:
                    self._last_random[i] = 0
                    i -= 1
                if i >= 0:
                    self._last_random[i] += 1
            else:
                self._last_random = [secrets.randbelow(64) for _ in range(12)]
            self._last_time = now
            random_part = list(self._last_random)

        time_chars = []
        for _ in range(8):
            time_chars.append(PUSH_KEY_ALPHABET[now % 64])
            now //= 64
        return "".join(reversed(time_chars)) + "".join(PUSH_KEY_ALPHABET[i] for i in random_part)


class JsonLinesSink(TelemetrySink):
    """Appends records to a JSON Lines file.

    File writes run in a worker thread so the flush loop is not blocked.
    """

    name = "jsonl"

    def __init__(
        self,
        path: str | Path,
        root_key: str = "wear_data",
        formatter: JsonFormatter | None = None,
    ) -> None:
        """Initialize the sink.

        Args:
            path: Output file (parent directories are created)
            root_key: Root node records are keyed under
            formatter: JSON formatter (default: compact)
        """
        super().__init__()
        self.path = Path(path).expanduser()
        self.root_key = root_key.strip("/")
        self.formatter = formatter or JsonFormatter(pretty_print=False)
        self._keys = PushKeyGenerator()
        self._handle: IO[str] | None = None
        self._write_lock = threading.Lock()
        self.records_written = 0

    def initialize(self, config: dict[str, Any] | None = None) -> None:
        """Apply sink configuration.

        Args:
            config: Supports ``root_key``
        """
        super().initialize(config)
        if config and config.get("root_key"):
            self.root_key = str(config["root_key"]).strip("/")

    def _write_line(self, line: str) -> None:
        with self._write_lock:
            if self._closed:
                raise RuntimeError(f"Sink '{self.name}' is closed")
            if self._handle is None:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._handle = open(self.path, "a", encoding="utf-8")
                logger.debug("Opened JSON Lines sink at %s", self.path)
            self._handle.write(line + "\n")
            self._handle.flush()

    async def publish(self, record: AggregateRecord) -> None:
        """Append one keyed record to the file.

        Args:
            record: The record to write

        Raises:
            RuntimeError: If the sink has been closed
            OSError: If the file cannot be written
        """
        if self._closed:
            raise RuntimeError(f"Sink '{self.name}' is closed")

        key_path = f"{self.root_key}/{self._keys.generate()}"
        line = self.formatter.format_keyed(record, key_path)
        await asyncio.to_thread(self._write_line, line)
        self.records_written += 1

    def _close_handle(self) -> None:
        with self._write_lock:
            if self._handle is not None:
                self._handle.close()
                self._handle = None

    async def close(self) -> None:
        """Close the output file once pending writes finish."""
        await super().close()
        await asyncio.to_thread(self._close_handle)

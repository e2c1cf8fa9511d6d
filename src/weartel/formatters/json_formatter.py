"""JSON formatter for aggregate records.

This module renders AggregateRecord payloads as JSON text for sinks that
write to files or the terminal.

Features:
- Uses AggregateRecord.to_payload() for the persisted field layout
- Supports pretty-printing (indented) or compact output
- Optional realtime-database style envelope (path + data)
"""

from __future__ import annotations

import json
from typing import Any

from weartel.models.base import AggregateRecord


class JsonFormatter:
    """Formats aggregate records as JSON.

    Instance Attributes:
        pretty_print: Whether to format with indentation (default: False)
    """

    name: str = "json"
    file_extension: str = ".jsonl"

    def __init__(self, pretty_print: bool = False) -> None:
        """Initialize the JSON formatter.

        Args:
            pretty_print: If True, output indented JSON.
                         If False, output compact single-line JSON.
        """
        self.pretty_print = pretty_print

    def _dumps(self, output: Any) -> str:
        if self.pretty_print:
            return json.dumps(output, indent=2, ensure_ascii=False)
        return json.dumps(output, ensure_ascii=False, separators=(",", ":"))

    def format(self, record: AggregateRecord) -> str:
        """Format one record's payload as a JSON string.

        Args:
            record: The record to render

        Returns:
            JSON object text, for example
            ``{"timestamp":"2024-01-15 10:30:00.123","type":"heart_rate","value":61.0}``
        """
        return self._dumps(record.to_payload())

    def format_keyed(self, record: AggregateRecord, path: str) -> str:
        """Format a record wrapped with the key it is stored under.

        Args:
            record: The record to render
            path: Storage path, such as ``wear_data/<push key>``

        Returns:
            JSON object text with ``path`` and ``data`` fields
        """
        return self._dumps({"path": path, "data": record.to_payload()})

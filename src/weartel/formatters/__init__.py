"""Formatters that render aggregate records for sinks.

- JsonFormatter: Pretty or compact JSON payloads
"""

from weartel.formatters.json_formatter import JsonFormatter

__all__ = [
    "JsonFormatter",
]

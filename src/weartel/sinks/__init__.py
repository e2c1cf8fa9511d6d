"""Sinks that persist or transmit aggregate records.

- TelemetrySink: Abstract base class
- ConsoleSink: Prints records to the terminal
- JsonLinesSink: Appends keyed records to a JSON Lines file
"""

from weartel.sinks.base import TelemetrySink
from weartel.sinks.console import ConsoleSink
from weartel.sinks.jsonl import JsonLinesSink, PushKeyGenerator

__all__ = [
    "ConsoleSink",
    "JsonLinesSink",
    "PushKeyGenerator",
    "TelemetrySink",
]

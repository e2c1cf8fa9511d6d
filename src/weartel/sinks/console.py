"""Terminal sink that prints each record with rich."""

from __future__ import annotations

from rich.console import Console

from weartel.formatters.json_formatter import JsonFormatter
from weartel.models.base import AggregateRecord
from weartel.sinks.base import TelemetrySink


class ConsoleSink(TelemetrySink):
    """Prints record payloads as JSON to the terminal."""

    name = "console"

    def __init__(
        self,
        console: Console | None = None,
        pretty_print: bool = False,
    ) -> None:
        """Initialize the sink.

        Args:
            console: Rich console to print to (default: stdout)
            pretty_print: Indent the JSON output
        """
        super().__init__()
        self.console = console or Console()
        self.formatter = JsonFormatter(pretty_print=pretty_print)

    async def publish(self, record: AggregateRecord) -> None:
        """Print one record.

        Args:
            record: The record to print
        """
        indent = 2 if self.formatter.pretty_print else None
        self.console.print_json(self.formatter.format(record), indent=indent)

"""Command-line interface for weartel.

This module provides:
- Typer-based CLI application
- Config file loading with CLI overrides
- Logging and Sentry setup from configuration
- A simulated collection run for exercising the pipeline

Usage:
    weartel run                        # Collect until Ctrl-C, print records
    weartel run --duration 10          # Collect for 10 seconds
    weartel run --sink jsonl -o out.jsonl
    weartel config                     # Show the effective configuration

Examples:
    # Flush every 500 ms and write keyed records to a file
    weartel run --interval 500 --sink jsonl --output ~/wear_data.jsonl

    # Simulate a device without a gyroscope
    weartel run --missing gyroscope --duration 5
"""

import asyncio
import contextlib
from enum import Enum
import logging
from pathlib import Path
from typing import Annotated, Any

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
import typer
import yaml

from weartel import __version__
from weartel.collectors.scheduler import SchedulerStats
from weartel.config import Config, LoggingConfig, load_config
from weartel.errors import TelemetryError
from weartel.models.base import Channel
from weartel.sensors.simulated import SimulatedSensorSource
from weartel.session import CollectionSession

app = typer.Typer(
    name="weartel",
    help="Buffered wearable sensor telemetry - sample, average, publish",
    no_args_is_help=False,
    add_completion=False,
    rich_markup_mode="rich",
)

# Records go to stdout; diagnostics and summaries to stderr
console = Console(stderr=True)


class SinkType(str, Enum):
    """Sink options for the run command."""

    CONSOLE = "console"
    JSONL = "jsonl"


def version_callback(value: bool) -> None:
    """Display version and exit."""
    if value:
        typer.echo(f"weartel version {__version__}")
        raise typer.Exit()


def build_cli_overrides(
    interval: int | None = None,
    sink: SinkType | None = None,
    output: Path | None = None,
    pretty: bool | None = None,
    disabled: list[Channel] | None = None,
    debug: bool = False,
) -> dict[str, Any]:
    """Build config override dict from CLI flags.

    Args:
        interval: Flush interval override in milliseconds
        sink: Sink type override
        output: Output file for the jsonl sink
        pretty: Pretty-print records
        disabled: Channels to turn off
        debug: Enable debug logging

    Returns:
        Dictionary of config overrides
    """
    overrides: dict[str, Any] = {}

    if interval is not None:
        overrides["flush_interval_millis"] = interval

    sink_overrides: dict[str, Any] = {}
    if sink is not None:
        sink_overrides["type"] = sink.value
    if output is not None:
        sink_overrides["path"] = str(output)
        sink_overrides.setdefault("type", SinkType.JSONL.value)
    if pretty is not None:
        sink_overrides["pretty_print"] = pretty
    if sink_overrides:
        overrides["sink"] = sink_overrides

    if disabled:
        overrides["channels"] = {channel.value: {"enabled": False} for channel in disabled}

    if debug:
        overrides["logging"] = {"enabled": True, "level": "DEBUG"}

    return overrides


def configure_logging(config: LoggingConfig) -> None:
    """Install log handlers from the logging config section.

    Warnings always reach stderr; when logging is enabled the configured
    level applies and an optional file receives the same records.

    Args:
        config: Logging configuration
    """
    level = getattr(logging, config.level) if config.enabled else logging.WARNING
    handlers: list[logging.Handler] = [
        RichHandler(console=console, show_path=False, rich_tracebacks=True),
    ]
    if config.enabled and config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(level=level, format="%(message)s", handlers=handlers, force=True)


def configure_sentry(config: Config) -> bool:
    """Initialize Sentry when it is enabled and has a DSN.

    Returns:
        True if Sentry was initialized
    """
    if not (config.sentry.enabled and config.sentry.dsn):
        return False

    from weartel.sentry import init_sentry

    init_sentry(
        dsn=config.sentry.dsn,
        environment=config.sentry.environment,
        traces_sample_rate=config.sentry.traces_sample_rate,
    )
    return True


def load_or_exit(config_path: Path | None, overrides: dict[str, Any]) -> Config:
    """Load configuration, exiting with status 1 on any config problem."""
    try:
        return load_config(
            config_path=str(config_path) if config_path else None,
            cli_overrides=overrides,
        )
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except Exception as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from e


def build_source(
    config: Config,
    missing: list[Channel] | None = None,
    seed: int | None = None,
) -> SimulatedSensorSource:
    """Create the simulated sensor source for a run.

    Args:
        config: Configuration supplying per-channel rates
        missing: Channels the simulated device lacks
        seed: Random seed for reproducible readings
    """
    rates = {channel: config.channels.get(channel).rate_hz for channel in Channel}
    return SimulatedSensorSource(rates_hz=rates, missing=missing or (), seed=seed)


async def run_session(session: CollectionSession, duration: float | None) -> SchedulerStats:
    """Collect for a duration (or until cancelled), then close the session.

    Args:
        session: The session to run
        duration: Seconds to collect, or None to run until interrupted

    Returns:
        Scheduler statistics after the terminal flush
    """
    async with session:
        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)
    return session.get_stats()


def render_stats(stats: SchedulerStats) -> Table:
    """Build a summary table for a finished run."""
    table = Table(title="Collection summary", show_header=False)
    table.add_column("metric", style="bold")
    table.add_column("value", justify="right")
    table.add_row("Flush interval", f"{stats.flush_interval_millis} ms")
    table.add_row("Ticks", str(stats.ticks))
    table.add_row("Flushes", str(stats.flushes))
    table.add_row("Records published", str(stats.records_published))
    table.add_row("Publish failures", str(stats.publish_failures))
    table.add_row("Samples accepted", str(stats.samples_accepted))
    table.add_row("Samples rejected", str(stats.samples_rejected))
    unavailable = ", ".join(c.value for c in stats.unavailable_channels) or "none"
    table.add_row("Unavailable sensors", unavailable)
    return table


# Common options
ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration file",
    ),
]

VersionOption = Annotated[
    bool | None,
    typer.Option(
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
]


@app.callback()
def main(version: VersionOption = None) -> None:
    """weartel - buffered wearable sensor telemetry.

    Buffers heart-rate, gyroscope and accelerometer readings, averages them
    on a fixed clock and publishes one record per channel per interval.
    """


@app.command("run")
def run_command(
    config: ConfigOption = None,
    interval: Annotated[
        int | None,
        typer.Option("--interval", "-i", help="Flush interval in milliseconds", min=10),
    ] = None,
    duration: Annotated[
        float | None,
        typer.Option("--duration", "-d", help="Seconds to collect (default: until Ctrl-C)", min=0),
    ] = None,
    sink: Annotated[
        SinkType | None,
        typer.Option("--sink", "-s", help="Where records are published"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output file for the jsonl sink"),
    ] = None,
    pretty: Annotated[
        bool | None,
        typer.Option("--pretty/--compact", help="Pretty-print console records"),
    ] = None,
    missing: Annotated[
        list[Channel] | None,
        typer.Option("--missing", "-m", help="Simulate a device without this sensor"),
    ] = None,
    disable: Annotated[
        list[Channel] | None,
        typer.Option("--disable", help="Do not collect this channel"),
    ] = None,
    seed: Annotated[
        int | None,
        typer.Option("--seed", help="Random seed for simulated readings"),
    ] = None,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug logging"),
    ] = False,
) -> None:
    """Run a simulated collection session.

    Samples stream from simulated sensors into per-channel buffers; every
    interval each buffer is drained, averaged and published.
    """
    overrides = build_cli_overrides(
        interval=interval,
        sink=sink,
        output=output,
        pretty=pretty,
        disabled=disable,
        debug=debug,
    )
    cfg = load_or_exit(config, overrides)

    configure_logging(cfg.logging)
    sentry_enabled = configure_sentry(cfg)

    session = CollectionSession.from_config(cfg, build_source(cfg, missing, seed))
    tracing: contextlib.AbstractContextManager[None] = contextlib.nullcontext()
    if sentry_enabled:
        from weartel.sentry import (
            add_breadcrumb,
            report_telemetry_error,
            set_session_context,
            trace_session,
        )

        session.scheduler.add_error_callback(report_telemetry_error)
        set_session_context(
            channels=[c.value for c in cfg.channels.enabled_channels()],
            flush_interval_millis=cfg.flush_interval_millis,
            sink=cfg.sink.type,
            source=session.source.name,
        )
        add_breadcrumb("Collection session starting", category="session")
        tracing = trace_session(session.source.name, cfg.sink.type)

    try:
        with tracing:
            stats = asyncio.run(run_session(session, duration))
    except KeyboardInterrupt:
        stats = session.get_stats()
    except TelemetryError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    console.print(render_stats(stats))


@app.command("config")
def config_command(config: ConfigOption = None) -> None:
    """Print the effective configuration as YAML."""
    cfg = load_or_exit(config, {})
    typer.echo(yaml.safe_dump(cfg.model_dump(mode="json"), sort_keys=False), nl=False)


def cli_main() -> None:
    """Entry point for the CLI application."""
    app()

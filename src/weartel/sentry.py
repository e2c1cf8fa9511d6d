"""Sentry SDK integration for weartel.

This module provides:
- Sentry initialization with asyncio and logging support
- Context and tags describing the collection session
- Capture helpers for pipeline errors (publish failures, missing sensors)
- Breadcrumbs for session lifecycle events
- A transaction wrapping each collection session

Usage:
    from weartel.sentry import init_sentry, report_telemetry_error

    init_sentry(dsn=config.sentry.dsn)  # Call at startup
    scheduler.add_error_callback(report_telemetry_error)
"""

from __future__ import annotations

from collections.abc import Generator
import contextlib
import logging
import os
import platform
import time
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from weartel import __version__
from weartel.errors import PublishError, SensorUnavailableError, TelemetryError


def init_sentry(
    *,
    dsn: str,
    environment: str | None = None,
    traces_sample_rate: float = 0.0,
    debug: bool = False,
    event_level: int = logging.ERROR,
) -> None:
    """Initialize Sentry SDK with weartel-specific configuration.

    Configures Sentry with:
    - AsyncioIntegration for errors in the flush task
    - LoggingIntegration (INFO+ as breadcrumbs, event_level+ as events)
    - System context and default tags for filtering

    Args:
        dsn: Sentry DSN
        environment: Deployment environment (default: WEARTEL_ENV or "production")
        traces_sample_rate: Sample rate for performance traces (0.0-1.0)
        debug: Enable Sentry debug mode for troubleshooting
        event_level: Minimum log level that creates Sentry events
    """
    sentry_sdk.init(
        dsn=dsn,
        traces_sample_rate=traces_sample_rate,
        debug=debug,
        send_default_pii=False,
        release=f"weartel@{__version__}",
        environment=environment or os.environ.get("WEARTEL_ENV", "production"),
        integrations=[
            AsyncioIntegration(),
            LoggingIntegration(
                level=logging.INFO,
                event_level=event_level,
            ),
        ],
        before_send=_before_send,
    )

    sentry_sdk.set_tag("app.version", __version__)
    sentry_sdk.set_tag("python.version", platform.python_version())
    sentry_sdk.set_tag("os.name", platform.system())

    set_system_context()


def _before_send(
    event: dict[str, Any],
    hint: dict[str, Any],
) -> dict[str, Any] | None:
    """Drop events for user interrupts.

    Args:
        event: The event dictionary
        hint: Additional context about the event

    Returns:
        The event to send, or None to drop it
    """
    if "exc_info" in hint:
        exc_type, _, _ = hint["exc_info"]
        if exc_type is KeyboardInterrupt:
            return None
    return event


def set_system_context() -> None:
    """Set system-level context for all events."""
    sentry_sdk.set_context("system", {
        "os": platform.system(),
        "os_version": platform.release(),
        "python_version": platform.python_version(),
        "python_implementation": platform.python_implementation(),
        "architecture": platform.machine(),
    })


def set_session_context(
    *,
    channels: list[str],
    flush_interval_millis: int,
    sink: str,
    source: str | None = None,
) -> None:
    """Describe the collection session for error tracking.

    Args:
        channels: Enabled channel names
        flush_interval_millis: Tick cadence
        sink: Sink type name
        source: Sensor source name
    """
    context: dict[str, Any] = {
        "channels": channels,
        "flush_interval_millis": flush_interval_millis,
        "sink": sink,
    }
    if source is not None:
        context["source"] = source
        sentry_sdk.set_tag("weartel.source", source)

    sentry_sdk.set_tag("weartel.sink", sink)
    sentry_sdk.set_context("session", context)


def capture_publish_error(error: PublishError) -> None:
    """Capture a failed record delivery with its channel and payload.

    Args:
        error: The publish failure reported by the scheduler
    """
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("channel", error.record.channel.value)
        scope.set_context("publish_error", {
            "channel": error.record.channel.value,
            "sample_count": error.record.sample_count,
            "payload": error.record.to_payload(),
            "error_type": type(error.cause).__name__,
        })
        sentry_sdk.capture_exception(error.cause)


def capture_sensor_unavailable(error: SensorUnavailableError) -> None:
    """Capture a missing sensor as a warning-level message.

    Args:
        error: The condition reported by the scheduler
    """
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("channel", error.channel.value)
        sentry_sdk.capture_message(str(error), level="warning")


def report_telemetry_error(error: TelemetryError) -> None:
    """Error observer forwarding pipeline errors to Sentry.

    Suitable for TelemetryScheduler.add_error_callback().

    Args:
        error: The error reported by the scheduler
    """
    if isinstance(error, PublishError):
        capture_publish_error(error)
    elif isinstance(error, SensorUnavailableError):
        capture_sensor_unavailable(error)
    else:
        sentry_sdk.capture_exception(error)


def add_breadcrumb(
    message: str,
    category: str = "weartel",
    level: str = "info",
    data: dict[str, Any] | None = None,
) -> None:
    """Add a breadcrumb for debugging.

    Args:
        message: Description of the event
        category: Category for grouping (e.g., "session", "sink", "config")
        level: Severity level (debug, info, warning, error)
        data: Additional data to attach
    """
    sentry_sdk.add_breadcrumb(
        message=message,
        category=category,
        level=level,
        data=data,
    )


@contextlib.contextmanager
def trace_session(source: str, sink: str) -> Generator[None, None, None]:
    """Context manager wrapping a collection session in a transaction.

    Args:
        source: Sensor source name
        sink: Sink type name

    Example:
        with trace_session("simulated", "jsonl"):
            asyncio.run(run_session(session, duration))
    """
    with sentry_sdk.start_transaction(name="collection_session", op="telemetry.session") as txn:
        txn.set_data("source", source)
        txn.set_data("sink", sink)
        start_time = time.monotonic()
        try:
            yield
            txn.set_data("success", True)
        except Exception as e:
            txn.set_data("success", False)
            txn.set_data("error", str(e))
            raise
        finally:
            txn.set_data("duration_ms", (time.monotonic() - start_time) * 1000)

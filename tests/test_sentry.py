"""Tests for Sentry integration helpers."""

from unittest.mock import patch

import pytest

from weartel import __version__
from weartel.errors import PublishError, SensorUnavailableError, TelemetryError
from weartel.models import AggregateRecord, Channel
from weartel.sentry import (
    _before_send,
    add_breadcrumb,
    capture_publish_error,
    init_sentry,
    report_telemetry_error,
    set_session_context,
    trace_session,
)


def make_publish_error() -> PublishError:
    record = AggregateRecord(channel=Channel.HEART_RATE, value=61.0, sample_count=3)
    return PublishError(record, ConnectionError("offline"))


class TestInitSentry:
    """Tests for init_sentry."""

    def test_init_passes_release_and_environment(self) -> None:
        """Test the SDK is initialized with weartel metadata."""
        with patch("weartel.sentry.sentry_sdk") as mock_sdk:
            init_sentry(dsn="https://key@example.invalid/1", environment="testing")

        kwargs = mock_sdk.init.call_args.kwargs
        assert kwargs["dsn"] == "https://key@example.invalid/1"
        assert kwargs["environment"] == "testing"
        assert kwargs["release"] == f"weartel@{__version__}"
        assert kwargs["send_default_pii"] is False
        mock_sdk.set_tag.assert_any_call("app.version", __version__)
        mock_sdk.set_context.assert_called_once()

    def test_environment_from_env_var(self) -> None:
        """Test WEARTEL_ENV is used when no environment is given."""
        with (
            patch("weartel.sentry.sentry_sdk") as mock_sdk,
            patch.dict("os.environ", {"WEARTEL_ENV": "staging"}),
        ):
            init_sentry(dsn="https://key@example.invalid/1")

        assert mock_sdk.init.call_args.kwargs["environment"] == "staging"


class TestBeforeSend:
    """Tests for event filtering."""

    def test_drops_keyboard_interrupt(self) -> None:
        """Test Ctrl-C is not reported."""
        hint = {"exc_info": (KeyboardInterrupt, KeyboardInterrupt(), None)}

        assert _before_send({"event_id": "1"}, hint) is None

    def test_keeps_other_events(self) -> None:
        """Test ordinary errors pass through."""
        event = {"event_id": "2"}
        hint = {"exc_info": (ValueError, ValueError(), None)}

        assert _before_send(event, hint) is event
        assert _before_send(event, {}) is event


class TestCapture:
    """Tests for pipeline error capture."""

    def test_capture_publish_error(self) -> None:
        """Test the sink's exception is captured with channel context."""
        error = make_publish_error()

        with patch("weartel.sentry.sentry_sdk") as mock_sdk:
            capture_publish_error(error)

        mock_sdk.capture_exception.assert_called_once_with(error.cause)
        scope = mock_sdk.new_scope.return_value.__enter__.return_value
        scope.set_tag.assert_called_once_with("channel", "heart_rate")
        context = scope.set_context.call_args.args[1]
        assert context["sample_count"] == 3
        assert context["error_type"] == "ConnectionError"
        assert context["payload"]["type"] == "heart_rate"

    def test_report_publish_error(self) -> None:
        """Test publish errors are routed to exception capture."""
        error = make_publish_error()

        with patch("weartel.sentry.sentry_sdk") as mock_sdk:
            report_telemetry_error(error)

        mock_sdk.capture_exception.assert_called_once_with(error.cause)
        mock_sdk.capture_message.assert_not_called()

    def test_report_sensor_unavailable(self) -> None:
        """Test missing sensors are captured as warning messages."""
        with patch("weartel.sentry.sentry_sdk") as mock_sdk:
            report_telemetry_error(SensorUnavailableError(Channel.GYROSCOPE))

        mock_sdk.capture_message.assert_called_once()
        args, kwargs = mock_sdk.capture_message.call_args
        assert "gyroscope" in args[0]
        assert kwargs["level"] == "warning"
        mock_sdk.capture_exception.assert_not_called()

    def test_report_other_error(self) -> None:
        """Test other pipeline errors are captured directly."""
        error = TelemetryError("something else")

        with patch("weartel.sentry.sentry_sdk") as mock_sdk:
            report_telemetry_error(error)

        mock_sdk.capture_exception.assert_called_once_with(error)


class TestContext:
    """Tests for context and breadcrumbs."""

    def test_set_session_context(self) -> None:
        """Test session details become tags and context."""
        with patch("weartel.sentry.sentry_sdk") as mock_sdk:
            set_session_context(
                channels=["heart_rate"],
                flush_interval_millis=1000,
                sink="jsonl",
                source="simulated",
            )

        mock_sdk.set_tag.assert_any_call("weartel.sink", "jsonl")
        mock_sdk.set_tag.assert_any_call("weartel.source", "simulated")
        mock_sdk.set_context.assert_called_once_with(
            "session",
            {
                "channels": ["heart_rate"],
                "flush_interval_millis": 1000,
                "sink": "jsonl",
                "source": "simulated",
            },
        )

    def test_add_breadcrumb(self) -> None:
        """Test breadcrumbs are forwarded to the SDK."""
        with patch("weartel.sentry.sentry_sdk") as mock_sdk:
            add_breadcrumb("Collection session starting", category="session")

        mock_sdk.add_breadcrumb.assert_called_once_with(
            message="Collection session starting",
            category="session",
            level="info",
            data=None,
        )


class TestTraceSession:
    """Tests for the session transaction helper."""

    def test_success(self) -> None:
        """Test a clean session is marked successful."""
        with patch("weartel.sentry.sentry_sdk") as mock_sdk:
            with trace_session("simulated", "jsonl"):
                pass

        mock_sdk.start_transaction.assert_called_once_with(
            name="collection_session", op="telemetry.session"
        )
        txn = mock_sdk.start_transaction.return_value.__enter__.return_value
        txn.set_data.assert_any_call("source", "simulated")
        txn.set_data.assert_any_call("success", True)

    def test_failure_reraised(self) -> None:
        """Test errors are recorded on the transaction and re-raised."""
        with patch("weartel.sentry.sentry_sdk") as mock_sdk:
            with pytest.raises(RuntimeError), trace_session("simulated", "console"):
                raise RuntimeError("sink exploded")

        txn = mock_sdk.start_transaction.return_value.__enter__.return_value
        txn.set_data.assert_any_call("success", False)
        txn.set_data.assert_any_call("error", "sink exploded")

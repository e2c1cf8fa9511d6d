"""Tests for weartel data models."""

from datetime import UTC, datetime

from pydantic import ValidationError
import pytest

from weartel.models import AggregateRecord, Channel, SensorAccuracy


class TestChannel:
    """Tests for the Channel enum."""

    def test_values(self) -> None:
        """Test channel names used in payloads and config."""
        assert Channel.HEART_RATE.value == "heart_rate"
        assert Channel.GYROSCOPE.value == "gyroscope"
        assert Channel.ACCELEROMETER.value == "accelerometer"

    def test_is_vector(self) -> None:
        """Test only motion channels carry vectors."""
        assert Channel.HEART_RATE.is_vector is False
        assert Channel.GYROSCOPE.is_vector is True
        assert Channel.ACCELEROMETER.is_vector is True

    def test_from_string(self) -> None:
        """Test channels can be built from their names."""
        assert Channel("gyroscope") is Channel.GYROSCOPE


class TestSensorAccuracy:
    """Tests for SensorAccuracy."""

    def test_levels(self) -> None:
        """Test all four accuracy levels exist."""
        assert [a.value for a in SensorAccuracy] == ["unreliable", "low", "medium", "high"]


class TestAggregateRecord:
    """Tests for AggregateRecord."""

    def test_heart_rate_record(self) -> None:
        """Test a scalar record."""
        record = AggregateRecord(channel=Channel.HEART_RATE, value=61.0, sample_count=3)

        assert record.value == 61.0
        assert record.sample_count == 3
        assert record.timestamp.tzinfo is not None

    def test_vector_record_coerces_list(self) -> None:
        """Test lists are accepted for vector values."""
        record = AggregateRecord(channel=Channel.GYROSCOPE, value=[1, 2, 3])

        assert record.value == (1.0, 2.0, 3.0)

    def test_scalar_on_vector_channel_rejected(self) -> None:
        """Test value shape must match the channel."""
        with pytest.raises(ValidationError, match="requires an \\(x, y, z\\) value"):
            AggregateRecord(channel=Channel.ACCELEROMETER, value=9.8)

    def test_vector_on_scalar_channel_rejected(self) -> None:
        """Test heart rate refuses vectors."""
        with pytest.raises(ValidationError, match="requires a scalar value"):
            AggregateRecord(channel=Channel.HEART_RATE, value=(1.0, 2.0, 3.0))

    def test_sample_count_positive(self) -> None:
        """Test a record always represents at least one sample."""
        with pytest.raises(ValidationError):
            AggregateRecord(channel=Channel.HEART_RATE, value=60.0, sample_count=0)

    def test_frozen(self) -> None:
        """Test records are immutable."""
        record = AggregateRecord(channel=Channel.HEART_RATE, value=60.0)

        with pytest.raises(ValidationError):
            record.value = 70.0  # type: ignore[misc]

    def test_format_timestamp(self) -> None:
        """Test millisecond precision timestamp rendering."""
        record = AggregateRecord(
            channel=Channel.HEART_RATE,
            value=60.0,
            timestamp=datetime(2024, 1, 15, 10, 30, 0, 123456, tzinfo=UTC),
        )

        assert record.format_timestamp() == "2024-01-15 10:30:00.123"

    def test_heart_rate_payload(self) -> None:
        """Test heart rate payload layout."""
        record = AggregateRecord(
            channel=Channel.HEART_RATE,
            value=61.0,
            timestamp=datetime(2024, 1, 15, 10, 30, 0, 5000, tzinfo=UTC),
        )

        assert record.to_payload() == {
            "timestamp": "2024-01-15 10:30:00.005",
            "type": "heart_rate",
            "value": 61.0,
        }

    def test_vector_payload(self) -> None:
        """Test motion payloads carry x, y and z fields."""
        record = AggregateRecord(
            channel=Channel.ACCELEROMETER,
            value=(2.0, 0.0, 9.8),
            timestamp=datetime(2024, 1, 15, 10, 30, 1, tzinfo=UTC),
        )

        payload = record.to_payload()

        assert payload == {
            "timestamp": "2024-01-15 10:30:01.000",
            "type": "accelerometer",
            "x": 2.0,
            "y": 0.0,
            "z": 9.8,
        }
        assert "value" not in payload

    def test_payload_excludes_sample_count(self) -> None:
        """Test bookkeeping fields stay out of the persisted payload."""
        record = AggregateRecord(channel=Channel.GYROSCOPE, value=(0.0, 0.0, 0.0), sample_count=50)

        assert "sample_count" not in record.to_payload()

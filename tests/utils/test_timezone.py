"""Tests for utils/timezone.py - UTC-everywhere time handling."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from utils.timezone import now_utc, to_utc, from_timestamp, parse_iso


class TestNowUtc:
    """Tests for now_utc()."""

    def test_returns_timezone_aware(self):
        """Result must have tzinfo set (not naive)."""
        assert now_utc().tzinfo is not None

    def test_is_utc(self):
        """Result timezone must be specifically UTC."""
        assert now_utc().tzinfo == timezone.utc


class TestToUtc:
    """Tests for to_utc()."""

    def test_raises_on_naive(self):
        """Naive datetime must raise ValueError."""
        with pytest.raises(ValueError, match="naive"):
            to_utc(datetime(2024, 1, 1, 12, 0, 0))

    def test_converts_other_timezone(self):
        """Lagos 12:00 becomes UTC 11:00."""
        lagos = datetime(2024, 1, 1, 12, 0, 0, tzinfo=ZoneInfo("Africa/Lagos"))
        result = to_utc(lagos)
        assert result.tzinfo == timezone.utc
        assert result.hour == 11


class TestFromTimestamp:
    """Tests for from_timestamp()."""

    def test_epoch_is_utc(self):
        result = from_timestamp(0)
        assert result == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_round_trips_with_timestamp(self):
        """A whole-second UTC time survives timestamp() and back."""
        moment = datetime(2025, 3, 14, 9, 26, 53, tzinfo=timezone.utc)
        assert from_timestamp(int(moment.timestamp())) == moment


class TestParseIso:
    """Tests for parse_iso()."""

    def test_handles_zulu(self):
        """ISO string with Z suffix should parse to UTC."""
        result = parse_iso("2024-01-01T12:00:00Z")
        assert result.tzinfo == timezone.utc
        assert result.hour == 12

    def test_converts_offset_to_utc(self):
        """+01:00 offsets are normalized to UTC."""
        result = parse_iso("2024-01-01T12:00:00+01:00")
        assert result.utcoffset() == timedelta(0)
        assert result.hour == 11

    def test_raises_on_naive_string(self):
        """String without offset must raise ValueError."""
        with pytest.raises(ValueError, match="naive"):
            parse_iso("2024-01-01T12:00:00")

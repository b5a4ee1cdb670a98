"""Tests for datetime helpers."""

from datetime import datetime, timezone

import pytest

from mcpcatalog.services.datetime_service import (
    format_datetime,
    format_iso,
    key_timestamp,
    now_utc,
    parse_datetime,
)


class TestDatetimeParsing:
    def test_parse_store_format(self) -> None:
        result = parse_datetime("2026-02-02 22:21:29.975359+0000")
        assert result.year == 2026
        assert result.month == 2
        assert result.hour == 22
        assert result.minute == 21

    def test_parse_iso_with_z(self) -> None:
        result = parse_datetime("2026-03-04T05:06:07Z")
        assert result.utcoffset() is not None
        assert result.utcoffset().total_seconds() == 0  # type: ignore[union-attr]
        assert result.second == 7

    def test_parse_date_only(self) -> None:
        result = parse_datetime("2026-02-02")
        assert result.day == 2
        assert result.hour == 0

    def test_duration_is_not_a_timestamp(self) -> None:
        with pytest.raises(ValueError, match="not a timestamp"):
            parse_datetime("P2D")

    def test_unparseable_string(self) -> None:
        with pytest.raises(ValueError):
            parse_datetime("yesterday-ish")

    def test_parse_datetime_object(self) -> None:
        dt = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
        assert parse_datetime(dt) == dt

    def test_parse_naive_datetime_adds_tz(self) -> None:
        result = parse_datetime(datetime(2026, 1, 1, 12, 0))
        assert result.tzinfo is not None

    def test_store_format_round_trips(self) -> None:
        dt = datetime(2026, 2, 2, 22, 21, 29, 975359, tzinfo=timezone.utc)
        assert parse_datetime(format_datetime(dt)) == dt

    def test_format_iso_naive_assumes_utc(self) -> None:
        assert format_iso(datetime(2026, 1, 1)) == "2026-01-01T00:00:00+00:00"

    def test_now_utc(self) -> None:
        assert now_utc().tzinfo is not None


class TestKeyTimestamp:
    def test_key_safe_characters(self) -> None:
        dt = datetime(2026, 5, 6, 7, 8, 9, 123456, tzinfo=timezone.utc)
        assert key_timestamp(dt) == "2026-05-06T07-08-09-123Z"

    def test_converts_to_utc(self) -> None:
        from datetime import timedelta

        dt = datetime(2026, 5, 6, 9, 0, 0, tzinfo=timezone(timedelta(hours=2)))
        assert key_timestamp(dt) == "2026-05-06T07-00-00-000Z"

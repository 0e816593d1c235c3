"""Unit tests for calendar window normalization and date helpers."""

from datetime import date, datetime, timedelta, timezone

import pytest

from taskq.exceptions import ValidationError
from taskq.utils.dates import (
    add_days,
    local_today,
    normalize_date_window,
    normalize_gmt_offset,
    parse_local_date,
)


class TestNormalizeDateWindow:
    """Tests for normalize_date_window."""

    def test_positive_offset(self) -> None:
        """Local days east of UTC should start the previous UTC day."""
        window = normalize_date_window("2024-01-01", "2024-01-01", "+02:00")
        assert window.since_utc == "2023-12-31T22:00:00Z"
        assert window.until_utc == "2024-01-01T21:59:59Z"

    def test_negative_offset(self) -> None:
        window = normalize_date_window("2024-03-10", "2024-03-12", "-05:00")
        assert window.since_utc == "2024-03-10T05:00:00Z"
        assert window.until_utc == "2024-03-13T04:59:59Z"

    def test_half_hour_offset(self) -> None:
        window = normalize_date_window("2024-06-01", "2024-06-01", "+05:30")
        assert window.since_utc == "2024-05-31T18:30:00Z"
        assert window.until_utc == "2024-06-01T18:29:59Z"

    def test_utc_offset(self) -> None:
        window = normalize_date_window("2024-02-28", "2024-02-29", "+00:00")
        assert window.since_utc == "2024-02-28T00:00:00Z"
        assert window.until_utc == "2024-02-29T23:59:59Z"

    def test_offset_without_colon(self) -> None:
        window = normalize_date_window("2024-01-01", "2024-01-01", "+0200")
        assert window.since_utc == "2023-12-31T22:00:00Z"

    def test_missing_offset_means_utc(self) -> None:
        window = normalize_date_window("2024-01-01", "2024-01-01", None)
        assert window.since_utc == "2024-01-01T00:00:00Z"

    def test_inverted_window_rejected(self) -> None:
        """until earlier than since should fail before any remote call."""
        with pytest.raises(ValidationError):
            normalize_date_window("2024-01-02", "2024-01-01", "+00:00")

    def test_malformed_date_rejected(self) -> None:
        with pytest.raises(ValidationError):
            normalize_date_window("2024-13-01", "2024-12-01", "+00:00")

    def test_malformed_offset_rejected(self) -> None:
        with pytest.raises(ValidationError):
            normalize_date_window("2024-01-01", "2024-01-01", "UTC+2")


class TestNormalizeGmtOffset:
    """Tests for normalize_gmt_offset."""

    @pytest.mark.parametrize(
        "raw,expected",
        [("+02:00", "+02:00"), ("-0330", "-03:30"), ("", "+00:00"), (None, "+00:00")],
    )
    def test_valid(self, raw: str | None, expected: str) -> None:
        assert normalize_gmt_offset(raw) == expected

    @pytest.mark.parametrize("raw", ["2:00", "+2", "+25:00", "+02:75", "abc"])
    def test_invalid(self, raw: str) -> None:
        with pytest.raises(ValidationError):
            normalize_gmt_offset(raw)


class TestLocalToday:
    """Tests for local_today."""

    def test_date_rolls_forward_east_of_utc(self) -> None:
        now = datetime(2024, 1, 1, 23, 30, tzinfo=timezone.utc)
        assert local_today("+02:00", now) == date(2024, 1, 2)

    def test_date_rolls_back_west_of_utc(self) -> None:
        now = datetime(2024, 1, 1, 2, 0, tzinfo=timezone.utc)
        assert local_today("-05:00", now) == date(2023, 12, 31)

    def test_naive_now_treated_as_utc(self) -> None:
        assert local_today("+00:00", datetime(2024, 5, 5, 12, 0)) == date(2024, 5, 5)


class TestParseLocalDate:
    """Tests for parse_local_date."""

    def test_iso_date(self) -> None:
        assert parse_local_date("2024-01-15", date(2030, 1, 1)) == date(2024, 1, 15)

    def test_tomorrow_is_relative_to_given_today(self) -> None:
        today = date(2024, 1, 15)
        assert parse_local_date("tomorrow", today) == today + timedelta(days=1)

    def test_empty_string_raises(self) -> None:
        with pytest.raises(ValidationError):
            parse_local_date("  ", date(2024, 1, 1))

    def test_invalid_date_raises(self) -> None:
        with pytest.raises(ValidationError):
            parse_local_date("not a date", date(2024, 1, 1))


def test_add_days() -> None:
    assert add_days(date(2024, 2, 28), 2) == "2024-03-01"

"""Tests for the shared conversion and date helpers."""

from __future__ import annotations

import datetime
from decimal import Decimal

import pytest

from Wealth_Flow.models.enums import HistoryPeriod
from Wealth_Flow.services._helpers import (
    as_mapping,
    as_records,
    compute_date_window,
    display_date,
    parse_period,
    parse_timestamp,
    safe_decimal,
    safe_int,
    safe_str,
    trailing_window,
)


class TestSafeConversions:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (172.62, Decimal("172.62")),
            ("0.0056", Decimal("0.0056")),
            (None, Decimal("0")),
            ("NA", Decimal("0")),
            (float("nan"), Decimal("0")),
            (True, Decimal("0")),
        ],
    )
    def test_safe_decimal(self, value: object, expected: Decimal) -> None:
        assert safe_decimal(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(121664700, 121664700), ("42", 42), (3.9, 3), (None, 0), ("NA", 0), (float("nan"), 0)],
    )
    def test_safe_int(self, value: object, expected: int) -> None:
        assert safe_int(value) == expected

    def test_safe_str(self) -> None:
        assert safe_str(None) == ""
        assert safe_str("  ", "fallback") == "fallback"
        assert safe_str(" Apple ") == "Apple"

    def test_shape_guards(self) -> None:
        assert as_mapping([1]) == {}
        assert as_mapping({"a": 1}) == {"a": 1}
        assert as_records({"a": 1}) == []
        assert as_records([{"a": 1}, "x", 2]) == [{"a": 1}]


class TestPeriods:
    def test_parse_known_period(self) -> None:
        assert parse_period("3m") == HistoryPeriod.THREE_MONTHS
        assert parse_period(HistoryPeriod.ONE_YEAR) == HistoryPeriod.ONE_YEAR

    def test_unknown_period_defaults_to_one_month(self) -> None:
        assert parse_period("10Y") == HistoryPeriod.ONE_MONTH

    @pytest.mark.parametrize(
        ("period", "start"),
        [
            ("1D", datetime.date(2024, 3, 14)),
            ("1W", datetime.date(2024, 3, 8)),
            ("1M", datetime.date(2024, 2, 15)),
            ("3M", datetime.date(2023, 12, 15)),
            ("6M", datetime.date(2023, 9, 15)),
            ("1Y", datetime.date(2023, 3, 15)),
        ],
    )
    def test_windows_from_march_15(self, period: str, start: datetime.date) -> None:
        today = datetime.date(2024, 3, 15)
        assert compute_date_window(period, today) == (start, today)

    def test_month_end_is_clamped(self) -> None:
        start, _ = compute_date_window("1M", datetime.date(2024, 3, 31))
        assert start == datetime.date(2024, 2, 29)

    def test_leap_day_year_back_is_clamped(self) -> None:
        start, _ = compute_date_window("1Y", datetime.date(2024, 2, 29))
        assert start == datetime.date(2023, 2, 28)

    def test_trailing_window(self) -> None:
        assert trailing_window(7, datetime.date(2024, 3, 1)) == (
            datetime.date(2024, 2, 23),
            datetime.date(2024, 3, 1),
        )


class TestTimestamps:
    def test_naive_date_is_utc_midnight(self) -> None:
        stamp = parse_timestamp("2024-03-15")
        assert stamp is not None
        assert int(stamp.timestamp()) == 1710460800

    def test_offset_is_converted_to_utc(self) -> None:
        stamp = parse_timestamp("2024-03-15T10:30:00-04:00")
        assert stamp is not None
        assert stamp.hour == 14

    @pytest.mark.parametrize("value", [None, "", "garbage"])
    def test_unparseable_returns_none(self, value: object) -> None:
        assert parse_timestamp(value) is None

    def test_display_date(self) -> None:
        assert display_date(datetime.date(2024, 3, 5)) == "3/5/2024"

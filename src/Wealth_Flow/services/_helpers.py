"""Shared helpers for the market-data service modules.

Consolidates safe type conversions and the date arithmetic used to build
provider request windows and candle timestamps.
"""

from __future__ import annotations

import datetime
import logging
from decimal import Decimal, InvalidOperation
from typing import Final

import pandas as pd

from Wealth_Flow.models.enums import HistoryPeriod

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Shared constants
# ---------------------------------------------------------------------------

EODHD_SOURCE: Final[str] = "eodhd"
EXTERNAL_CALL_TIMEOUT_SECONDS: Final[float] = 30.0

DEFAULT_PERIOD: Final[HistoryPeriod] = HistoryPeriod.ONE_MONTH

# Calendar offset subtracted from "today" for each chart period
PERIOD_OFFSETS: Final[dict[HistoryPeriod, pd.DateOffset]] = {
    HistoryPeriod.ONE_DAY: pd.DateOffset(days=1),
    HistoryPeriod.ONE_WEEK: pd.DateOffset(days=7),
    HistoryPeriod.ONE_MONTH: pd.DateOffset(months=1),
    HistoryPeriod.THREE_MONTHS: pd.DateOffset(months=3),
    HistoryPeriod.SIX_MONTHS: pd.DateOffset(months=6),
    HistoryPeriod.ONE_YEAR: pd.DateOffset(years=1),
}


# ---------------------------------------------------------------------------
# Safe type conversions
# ---------------------------------------------------------------------------


def safe_decimal(value: object) -> Decimal:
    """Convert a numeric value to Decimal via string to preserve precision.

    Falls back to ``Decimal("0")`` for NaN / None / "NA" / unparseable values.
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not result.is_finite():
        return Decimal("0")
    return result


def safe_int(value: object) -> int:
    """Convert a numeric value to int, treating NaN/None as 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        float_val = float(str(value))
        if float_val != float_val:  # NaN check without numpy
            return 0
        return int(float_val)
    except (ValueError, TypeError, OverflowError):
        return 0


def safe_str(value: object, default: str = "") -> str:
    """Return *value* as a string, or *default* when it is None or empty."""
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def as_mapping(value: object) -> dict[str, object]:
    """Return *value* if it is a JSON object, otherwise an empty dict."""
    if isinstance(value, dict):
        return value
    return {}


def as_records(value: object) -> list[dict[str, object]]:
    """Return the JSON objects in *value* if it is a list, otherwise ``[]``."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


# ---------------------------------------------------------------------------
# Date handling
# ---------------------------------------------------------------------------


def parse_period(period: HistoryPeriod | str) -> HistoryPeriod:
    """Coerce a period token to ``HistoryPeriod``, defaulting to one month."""
    if isinstance(period, HistoryPeriod):
        return period
    try:
        return HistoryPeriod(str(period).strip().upper())
    except ValueError:
        logger.warning("Unknown period '%s', using %s", period, DEFAULT_PERIOD)
        return DEFAULT_PERIOD


def compute_date_window(
    period: HistoryPeriod | str,
    today: datetime.date,
) -> tuple[datetime.date, datetime.date]:
    """Return the inclusive ``(from, to)`` window for a chart period.

    Month and year offsets clamp to the last day of the target month, so
    2024-03-31 minus one month is 2024-02-29.
    """
    offset = PERIOD_OFFSETS[parse_period(period)]
    start = (pd.Timestamp(today) - offset).date()
    return start, today


def trailing_window(days: int, today: datetime.date) -> tuple[datetime.date, datetime.date]:
    """Return the inclusive ``(today - days, today)`` window."""
    return today - datetime.timedelta(days=days), today


def parse_timestamp(value: object) -> pd.Timestamp | None:
    """Parse a provider date/datetime string into a UTC timestamp.

    Naive values are taken as UTC. Returns None when unparseable.
    """
    if value is None or value == "":
        return None
    try:
        stamp = pd.Timestamp(str(value))
    except (ValueError, TypeError):
        return None
    if pd.isna(stamp):
        return None
    if stamp.tzinfo is None:
        return stamp.tz_localize("UTC")
    return stamp.tz_convert("UTC")


def epoch_seconds(stamp: pd.Timestamp) -> int:
    """Seconds since the Unix epoch for a tz-aware timestamp."""
    return int(stamp.timestamp())


def display_date(day: datetime.date) -> str:
    """Short chart label for a date: ``3/15/2024``."""
    return f"{day.month}/{day.day}/{day.year}"

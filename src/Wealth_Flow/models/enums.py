"""StrEnum types for the market-data and portfolio domain.

Use enum members in business logic, never raw strings.
"""

from enum import StrEnum


class HistoryPeriod(StrEnum):
    """Look-back window for historical candles.

    Values are the tokens the dashboard sends, so they stay upper-case.
    """

    ONE_DAY = "1D"
    ONE_WEEK = "1W"
    ONE_MONTH = "1M"
    THREE_MONTHS = "3M"
    SIX_MONTHS = "6M"
    ONE_YEAR = "1Y"


class FailurePolicy(StrEnum):
    """How a gateway operation reports an upstream failure."""

    PROPAGATE = "propagate"
    DEGRADE = "degrade"


class PositionClass(StrEnum):
    """Custom classification a user assigns to a position."""

    PILLAR = "pillar"
    SMALL_CAP = "small_cap"
    CASH = "cash"
    OTHER = "other"


class RebalanceAction(StrEnum):
    """Trade direction needed to move a position toward its target weight."""

    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


class HealthSeverity(StrEnum):
    """Severity of a portfolio health check result."""

    ALERT = "alert"
    WARNING = "warning"
    OK = "ok"

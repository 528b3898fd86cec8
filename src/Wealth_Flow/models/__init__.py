"""Pydantic v2 models and enums.

Re-exports all public models so consumers can import directly:
    from Wealth_Flow.models import Quote, Candle, Position
"""

from Wealth_Flow.models.enums import (
    FailurePolicy,
    HealthSeverity,
    HistoryPeriod,
    PositionClass,
    RebalanceAction,
)
from Wealth_Flow.models.market_data import (
    Candle,
    CompanyProfile,
    FundamentalData,
    MetricSet,
    NewsItem,
    Quote,
    SupportedTicker,
    TickerOverview,
    TickerSearchResult,
)
from Wealth_Flow.models.portfolio import (
    HealthCheck,
    PortfolioHealth,
    Position,
    PositionWeight,
    RebalanceRecommendation,
    SectorAllocation,
    Underperformer,
)
from Wealth_Flow.models.preferences import UserPreferences

__all__ = [
    # Enums
    "FailurePolicy",
    "HealthSeverity",
    "HistoryPeriod",
    "PositionClass",
    "RebalanceAction",
    # Market data
    "Candle",
    "CompanyProfile",
    "FundamentalData",
    "MetricSet",
    "NewsItem",
    "Quote",
    "SupportedTicker",
    "TickerOverview",
    "TickerSearchResult",
    # Portfolio
    "HealthCheck",
    "PortfolioHealth",
    "Position",
    "PositionWeight",
    "RebalanceRecommendation",
    "SectorAllocation",
    "Underperformer",
    # Preferences
    "UserPreferences",
]

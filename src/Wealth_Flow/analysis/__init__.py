"""Portfolio analytics for the dashboard.

Re-exports all public functions so consumers can import directly:
    from Wealth_Flow.analysis import position_weights, assess_health
"""

from Wealth_Flow.analysis.portfolio import (
    assess_health,
    position_weights,
    rebalance_recommendations,
    sector_allocation,
    total_value,
    underperformers,
    weight_of,
)

__all__ = [
    "assess_health",
    "position_weights",
    "rebalance_recommendations",
    "sector_allocation",
    "total_value",
    "underperformers",
    "weight_of",
]

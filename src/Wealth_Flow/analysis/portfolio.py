"""Portfolio arithmetic behind the dashboard: weights, allocation, rebalancing, health.

Every function is a pure reduction over positions already priced by the
caller. Values use each position's mark price (current price, falling back
to entry price). Percentages are in the 0-100 range.
"""

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Final

from Wealth_Flow.models.enums import HealthSeverity, PositionClass, RebalanceAction
from Wealth_Flow.models.portfolio import (
    HealthCheck,
    PortfolioHealth,
    Position,
    PositionWeight,
    RebalanceRecommendation,
    SectorAllocation,
    Underperformer,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Thresholds (percentage points unless noted)
# ---------------------------------------------------------------------------

REBALANCE_BAND: Final[Decimal] = Decimal("1")
MIN_POSITIONS: Final[int] = 10
MAX_SINGLE_WEIGHT: Final[Decimal] = Decimal("15")
PILLAR_MIN_WEIGHT: Final[Decimal] = Decimal("60")
PILLAR_MAX_WEIGHT: Final[Decimal] = Decimal("85")
SMALL_CAP_MAX_WEIGHT: Final[Decimal] = Decimal("10")
CASH_MIN_WEIGHT: Final[Decimal] = Decimal("5")
CASH_MAX_WEIGHT: Final[Decimal] = Decimal("25")
TOP_UNDERPERFORMERS: Final[int] = 3

_HUNDRED: Final[Decimal] = Decimal("100")
_ZERO: Final[Decimal] = Decimal("0")


def total_value(positions: list[Position]) -> Decimal:
    """Sum of market values."""
    return sum((p.market_value for p in positions), _ZERO)


def weight_of(value: Decimal, total: Decimal) -> Decimal:
    """``value`` as a percentage of ``total``; 0 when the total is not positive."""
    if total <= 0:
        return _ZERO
    return value / total * _HUNDRED


def position_weights(positions: list[Position]) -> list[PositionWeight]:
    """Each position's share of the portfolio, heaviest first."""
    total = total_value(positions)
    weights = [
        PositionWeight(
            ticker=p.ticker,
            name=p.name or p.ticker,
            value=p.market_value,
            weight_pct=weight_of(p.market_value, total),
        )
        for p in positions
    ]
    return sorted(weights, key=lambda w: w.weight_pct, reverse=True)


def sector_allocation(positions: list[Position]) -> list[SectorAllocation]:
    """Aggregate value per sector, largest first. Blank sectors count as "Other"."""
    by_sector: dict[str, Decimal] = defaultdict(lambda: _ZERO)
    for p in positions:
        by_sector[p.sector or "Other"] += p.market_value

    total = sum(by_sector.values(), _ZERO)
    allocations = [
        SectorAllocation(sector=sector, value=value, percentage=weight_of(value, total))
        for sector, value in by_sector.items()
    ]
    return sorted(allocations, key=lambda a: a.value, reverse=True)


def rebalance_recommendations(positions: list[Position]) -> list[RebalanceRecommendation]:
    """Trades that move positions with a target weight back toward it.

    A position more than ``REBALANCE_BAND`` points under target is a BUY,
    more than that over target is a SELL, anything inside the band is a HOLD.
    Positions without a target (0) are left out.
    """
    total = total_value(positions)
    recommendations: list[RebalanceRecommendation] = []

    for p in positions:
        if p.target_percentage <= 0:
            continue

        current_pct = weight_of(p.market_value, total)
        difference = current_pct - p.target_percentage
        target_value = p.target_percentage / _HUNDRED * total
        value_gap = p.market_value - target_value
        quantity = abs(value_gap / p.mark_price) if p.mark_price else _ZERO

        if difference < -REBALANCE_BAND:
            action = RebalanceAction.BUY
        elif difference > REBALANCE_BAND:
            action = RebalanceAction.SELL
        else:
            action = RebalanceAction.HOLD

        recommendations.append(
            RebalanceRecommendation(
                ticker=p.ticker,
                current_percentage=current_pct,
                target_percentage=p.target_percentage,
                difference=difference,
                action=action,
                quantity_to_trade=quantity,
            )
        )

    return recommendations


def assess_health(positions: list[Position]) -> PortfolioHealth:
    """Run the diversification, concentration, liquidity and loss checks."""
    total = total_value(positions)
    checks: list[HealthCheck] = []

    # Diversification
    holdings = [p for p in positions if p.classification != PositionClass.CASH]
    if len(holdings) < MIN_POSITIONS:
        checks.append(
            _check(
                HealthSeverity.WARNING,
                f"Diversification low: only {len(holdings)} positions (target: >{MIN_POSITIONS})",
            )
        )
    else:
        checks.append(_check(HealthSeverity.OK, f"Good diversification: {len(holdings)} positions"))

    # Weight by class, and the single heaviest position
    class_weight: dict[PositionClass, Decimal] = defaultdict(lambda: _ZERO)
    heaviest: tuple[str, Decimal] | None = None
    for p in positions:
        weight = weight_of(p.market_value, total)
        class_weight[p.classification] += weight
        if heaviest is None or weight > heaviest[1]:
            heaviest = (p.ticker, weight)

    if heaviest is not None and heaviest[1] > MAX_SINGLE_WEIGHT:
        checks.append(
            _check(
                HealthSeverity.ALERT,
                f"Concentration risk: {heaviest[0]} is {heaviest[1]:.1f}% of portfolio "
                f"(>{MAX_SINGLE_WEIGHT}%)",
            )
        )

    pillar = class_weight[PositionClass.PILLAR]
    if pillar < PILLAR_MIN_WEIGHT:
        checks.append(_check(HealthSeverity.WARNING, f"Pillar weight low: {pillar:.1f}%"))
    elif pillar > PILLAR_MAX_WEIGHT:
        checks.append(_check(HealthSeverity.WARNING, f"Pillar weight high: {pillar:.1f}%"))
    else:
        checks.append(_check(HealthSeverity.OK, f"Pillar weight healthy: {pillar:.1f}%"))

    small_cap = class_weight[PositionClass.SMALL_CAP]
    if small_cap > SMALL_CAP_MAX_WEIGHT:
        checks.append(
            _check(
                HealthSeverity.ALERT,
                f"High risk in small/mid caps: {small_cap:.1f}% (max {SMALL_CAP_MAX_WEIGHT}%)",
            )
        )
    else:
        checks.append(_check(HealthSeverity.OK, "Small/mid cap risk managed"))

    cash = class_weight[PositionClass.CASH]
    if cash < CASH_MIN_WEIGHT:
        checks.append(_check(HealthSeverity.WARNING, f"Low liquidity: {cash:.1f}% cash"))
    elif cash > CASH_MAX_WEIGHT:
        checks.append(_check(HealthSeverity.WARNING, f"High cash drag: {cash:.1f}%"))
    else:
        checks.append(_check(HealthSeverity.OK, f"Cash position healthy: {cash:.1f}%"))

    health = PortfolioHealth(checks=checks, underperformers=underperformers(holdings))
    logger.debug(
        "Health assessed: %d alerts, %d warnings, %d passed",
        len(health.alerts),
        len(health.warnings),
        health.passed,
    )
    return health


def underperformers(
    positions: list[Position],
    limit: int = TOP_UNDERPERFORMERS,
) -> list[Underperformer]:
    """The *limit* worst losing positions by return, worst first.

    Only positions with a positive current price and cost basis qualify.
    Unquoted positions are left out rather than counted as a total loss.
    """
    losers: list[Underperformer] = []
    for p in positions:
        if p.current_price is None or p.current_price <= 0 or p.cost_basis <= 0:
            continue
        if p.market_value >= p.cost_basis:
            continue
        return_pct = (p.market_value - p.cost_basis) / p.cost_basis * _HUNDRED
        losers.append(Underperformer(ticker=p.ticker, return_pct=return_pct))

    losers.sort(key=lambda u: u.return_pct)
    return losers[:limit]


def _check(severity: HealthSeverity, message: str) -> HealthCheck:
    return HealthCheck(severity=severity, message=message)

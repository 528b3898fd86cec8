"""Portfolio analytics API route.

POST /api/portfolio/analysis — Weights, sector allocation, rebalancing and
health checks for a list of positions, optionally re-priced first.
"""

import logging
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, field_serializer

from Wealth_Flow.analysis import (
    assess_health,
    position_weights,
    rebalance_recommendations,
    sector_allocation,
    total_value,
)
from Wealth_Flow.models.portfolio import (
    PortfolioHealth,
    Position,
    PositionWeight,
    RebalanceRecommendation,
    SectorAllocation,
)
from Wealth_Flow.services.valuation import PortfolioValuationService
from Wealth_Flow.web.deps import get_api_key, get_valuation_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portfolio", tags=["portfolio"])

# ---------------------------------------------------------------------------
# Request / response models (web-layer schemas)
# ---------------------------------------------------------------------------


class PortfolioAnalysisRequest(BaseModel):
    """Positions to analyze, and whether to refresh their prices first."""

    positions: list[Position]
    refresh_prices: bool = False


class PortfolioAnalysis(BaseModel):
    """Everything the dashboard shows for one portfolio."""

    model_config = ConfigDict(frozen=True)

    total_value: Decimal
    positions: list[Position]
    weights: list[PositionWeight]
    sectors: list[SectorAllocation]
    rebalance: list[RebalanceRecommendation]
    health: PortfolioHealth

    @field_serializer("total_value")
    def serialize_total(self, value: Decimal) -> str:
        return str(value)


# ---------------------------------------------------------------------------
# Route handlers
# ---------------------------------------------------------------------------


@router.post("/analysis", response_model=PortfolioAnalysis)
async def analyze_portfolio(
    request: PortfolioAnalysisRequest,
    valuation: Annotated[PortfolioValuationService, Depends(get_valuation_service)],
    api_key: Annotated[str | None, Depends(get_api_key)],
) -> PortfolioAnalysis:
    """Run the portfolio analytics over the submitted positions."""
    positions = request.positions
    if request.refresh_prices:
        positions = await valuation.refresh_prices(positions, api_key)

    logger.info("Analyzing portfolio of %d positions", len(positions))
    return PortfolioAnalysis(
        total_value=total_value(positions),
        positions=positions,
        weights=position_weights(positions),
        sectors=sector_allocation(positions),
        rebalance=rebalance_recommendations(positions),
        health=assess_health(positions),
    )

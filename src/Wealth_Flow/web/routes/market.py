"""Market data API routes.

GET /api/market/search?q=  Ticker search.
GET /api/market/exchanges/{exchange}/tickers  Exchange symbol list.
GET /api/market/{symbol}/quote  Latest quote (errors propagate).
GET /api/market/{symbol}/history?period=1M  Daily candles.
GET /api/market/{symbol}/fundamentals  Profile and metrics, or null.
GET /api/market/{symbol}/news  Last week's headlines.
GET /api/market/{symbol}/overview  Quote, fundamentals and news together.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from Wealth_Flow.models.enums import HistoryPeriod
from Wealth_Flow.models.market_data import (
    Candle,
    FundamentalData,
    NewsItem,
    Quote,
    SupportedTicker,
    TickerOverview,
    TickerSearchResult,
)
from Wealth_Flow.services.market_data import MarketDataGateway
from Wealth_Flow.web.deps import (
    get_api_key,
    get_gateway,
    validate_exchange_code,
    validate_ticker_symbol,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/market", tags=["market"])

Gateway = Annotated[MarketDataGateway, Depends(get_gateway)]
ApiKey = Annotated[str | None, Depends(get_api_key)]
Symbol = Annotated[str, Depends(validate_ticker_symbol)]


# ---------------------------------------------------------------------------
# Collection routes (registered before /{symbol} routes)
# ---------------------------------------------------------------------------


@router.get("/search", response_model=list[TickerSearchResult])
async def search_tickers(
    gateway: Gateway,
    api_key: ApiKey,
    q: Annotated[str, Query(max_length=64, description="Symbol fragment or company name")] = "",
) -> list[TickerSearchResult]:
    """Search tickers; an empty query returns an empty list."""
    return await gateway.search_tickers(q, api_key)


@router.get("/exchanges/{exchange}/tickers", response_model=list[SupportedTicker])
async def supported_tickers(
    exchange: Annotated[str, Depends(validate_exchange_code)],
    gateway: Gateway,
    api_key: ApiKey,
) -> list[SupportedTicker]:
    """Return every symbol listed on *exchange*."""
    return await gateway.get_supported_tickers(exchange, api_key)


# ---------------------------------------------------------------------------
# Per-symbol routes
# ---------------------------------------------------------------------------


@router.get("/{symbol}/quote", response_model=Quote)
async def get_quote(symbol: Symbol, gateway: Gateway, api_key: ApiKey) -> Quote:
    """Return the latest quote.

    Credential and upstream errors propagate to the exception handlers
    (400 and 502 respectively).
    """
    return await gateway.get_quote(symbol, api_key)


@router.get("/{symbol}/history", response_model=list[Candle])
async def get_history(
    symbol: Symbol,
    gateway: Gateway,
    api_key: ApiKey,
    period: Annotated[
        str, Query(description="1D, 1W, 1M, 3M, 6M or 1Y")
    ] = HistoryPeriod.ONE_MONTH.value,
) -> list[Candle]:
    """Return daily candles; unknown periods fall back to one month."""
    return await gateway.get_historical_data(symbol, period, api_key)


@router.get("/{symbol}/fundamentals", response_model=FundamentalData | None)
async def get_fundamentals(
    symbol: Symbol,
    gateway: Gateway,
    api_key: ApiKey,
) -> FundamentalData | None:
    """Return company profile and metrics, or null when unavailable."""
    return await gateway.get_fundamental_data(symbol, api_key)


@router.get("/{symbol}/news", response_model=list[NewsItem])
async def get_news(symbol: Symbol, gateway: Gateway, api_key: ApiKey) -> list[NewsItem]:
    """Return recent news items for the symbol."""
    return await gateway.get_news(symbol, api_key)


@router.get("/{symbol}/overview", response_model=TickerOverview)
async def get_overview(symbol: Symbol, gateway: Gateway, api_key: ApiKey) -> TickerOverview:
    """Return quote, fundamentals and news in one response."""
    return await gateway.get_ticker_overview(symbol, api_key)

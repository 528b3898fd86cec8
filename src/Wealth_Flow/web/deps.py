"""Dependency injection providers for FastAPI route handlers.

Shared resources (Database, ServiceCache, MarketDataGateway, CredentialStore)
are created once in the application lifespan and stored on ``app.state``.
Route handlers declare dependencies and FastAPI injects them.
"""

import logging
import re
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Path, Request

from Wealth_Flow.data.database import Database
from Wealth_Flow.data.repository import Repository
from Wealth_Flow.services.credentials import CredentialStore
from Wealth_Flow.services.market_data import MarketDataGateway
from Wealth_Flow.services.valuation import PortfolioValuationService

logger = logging.getLogger(__name__)

# Symbols with an optional exchange suffix: AAPL, AAPL.US, BRK-B.US, VOD.LSE
_TICKER_PATTERN = re.compile(r"^[A-Z0-9][A-Z0-9\-]{0,11}(\.[A-Z0-9]{1,6})?$")
_EXCHANGE_PATTERN = re.compile(r"^[A-Z0-9]{1,10}$")


def get_database(request: Request) -> Database:
    """Return the Database instance from application state."""
    db: Database = request.app.state.database
    return db


def get_repository(db: Annotated[Database, Depends(get_database)]) -> Repository:
    """Return a Repository backed by the app-wide Database."""
    return Repository(db)


def get_gateway(request: Request) -> MarketDataGateway:
    """Return the app-wide MarketDataGateway.

    One gateway (and so one cache and one in-flight table) serves every
    request, which is what makes caching and request coalescing effective.
    """
    gateway: MarketDataGateway = request.app.state.gateway
    return gateway


def get_valuation_service(
    gateway: Annotated[MarketDataGateway, Depends(get_gateway)],
) -> PortfolioValuationService:
    """Return a PortfolioValuationService over the shared gateway."""
    return PortfolioValuationService(gateway)


def get_credential_store(request: Request) -> CredentialStore:
    """Return the app-wide CredentialStore."""
    store: CredentialStore = request.app.state.credentials
    return store


def get_user_id(
    x_user_id: Annotated[str | None, Header(description="Caller's user id")] = None,
) -> str | None:
    """Return the ``X-User-Id`` header, or None when absent or blank."""
    if x_user_id is None:
        return None
    return x_user_id.strip() or None


def require_user_id(user_id: Annotated[str | None, Depends(get_user_id)]) -> str:
    """Like ``get_user_id`` but rejects the request with 400 when absent."""
    if user_id is None:
        raise HTTPException(status_code=400, detail="X-User-Id header is required")
    return user_id


async def get_api_key(
    user_id: Annotated[str | None, Depends(get_user_id)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> str | None:
    """Resolve the caller's EODHD key (None when nothing is configured)."""
    return await store.get_api_key(user_id)


def validate_ticker_symbol(
    symbol: Annotated[str, Path(description="Ticker symbol, optionally with exchange suffix")],
) -> str:
    """Validate and normalize a ticker symbol path parameter.

    Raises HTTP 422 if the symbol is invalid.
    """
    normalized = symbol.strip().upper()
    if not _TICKER_PATTERN.match(normalized):
        raise HTTPException(
            status_code=422,
            detail=f"Invalid ticker symbol: '{symbol}'.",
        )
    return normalized


def validate_exchange_code(
    exchange: Annotated[str, Path(description="Exchange code, e.g. US or LSE")],
) -> str:
    """Validate and normalize an exchange code path parameter."""
    normalized = exchange.strip().upper()
    if not _EXCHANGE_PATTERN.match(normalized):
        raise HTTPException(
            status_code=422,
            detail=f"Invalid exchange code: '{exchange}'.",
        )
    return normalized

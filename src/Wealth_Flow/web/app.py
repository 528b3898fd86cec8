"""FastAPI app factory and application lifespan."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from Wealth_Flow import __version__
from Wealth_Flow.data.database import Database
from Wealth_Flow.data.repository import Repository
from Wealth_Flow.logging_config import configure_logging
from Wealth_Flow.services.cache import ServiceCache, ttl_overrides_from_env
from Wealth_Flow.services.credentials import CredentialStore, api_key_from_env
from Wealth_Flow.services.market_data import MarketDataGateway
from Wealth_Flow.web.middleware import RequestLoggingMiddleware, register_exception_handlers

logger = logging.getLogger(__name__)


def create_app(*, db_path: str | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: SQLite path for the preference store. Defaults to
            ``WEALTH_FLOW_DB_PATH`` or ``data/wealth_flow.db``.
    """
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        database = Database(db_path)
        await database.connect()
        cache = ServiceCache(ttl_overrides=ttl_overrides_from_env())
        gateway = MarketDataGateway(cache=cache)

        app.state.database = database
        app.state.cache = cache
        app.state.gateway = gateway
        app.state.credentials = CredentialStore(
            repository=Repository(database),
            fallback_key=api_key_from_env(),
        )
        logger.info("Wealth Flow services started")
        try:
            yield
        finally:
            await gateway.aclose()
            await database.close()
            logger.info("Wealth Flow services stopped")

    app = FastAPI(title="Wealth Flow", version=__version__, lifespan=lifespan)

    register_exception_handlers(app)
    app.add_middleware(RequestLoggingMiddleware)

    from Wealth_Flow.web.routes import market_router, portfolio_router, settings_router

    app.include_router(market_router, prefix="/api")
    app.include_router(settings_router, prefix="/api")
    app.include_router(portfolio_router, prefix="/api")

    @app.get("/api/health")
    async def health_check() -> JSONResponse:
        return JSONResponse({"status": "ok", "version": __version__})

    logger.info("Wealth Flow web app created")
    return app

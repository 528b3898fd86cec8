"""FastAPI route modules for Wealth Flow.

Re-exports all routers so the application factory can import them:
    from Wealth_Flow.web.routes import market_router, settings_router
"""

from Wealth_Flow.web.routes.market import router as market_router
from Wealth_Flow.web.routes.portfolio import router as portfolio_router
from Wealth_Flow.web.routes.settings import router as settings_router

__all__ = [
    "market_router",
    "portfolio_router",
    "settings_router",
]

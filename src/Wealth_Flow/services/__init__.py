"""Market data, caching, credential and valuation services.

Re-exports all public service classes so consumers can import directly:
    from Wealth_Flow.services import MarketDataGateway, ServiceCache
"""

from Wealth_Flow.services.cache import CacheEntry, ServiceCache
from Wealth_Flow.services.credentials import CredentialStore
from Wealth_Flow.services.market_data import MarketDataGateway
from Wealth_Flow.services.valuation import PortfolioValuationService

__all__ = [
    # Infrastructure
    "CacheEntry",
    "CredentialStore",
    "ServiceCache",
    # Data services
    "MarketDataGateway",
    "PortfolioValuationService",
]

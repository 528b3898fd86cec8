"""Refresh position prices from the market-data gateway.

Quotes are fetched one ticker at a time so a large portfolio does not fan
out into a burst of concurrent provider calls. Cash positions are never
quoted. A failed quote, or one without a positive price, leaves that
position's last known price in place.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from Wealth_Flow.models.enums import PositionClass
from Wealth_Flow.models.portfolio import Position
from Wealth_Flow.services.market_data import MarketDataGateway
from Wealth_Flow.utils.exceptions import DataFetchError

logger = logging.getLogger(__name__)


class PortfolioValuationService:
    """Mark positions to market.

    Usage::

        valuation = PortfolioValuationService(gateway)
        positions = await valuation.refresh_prices(positions, api_key)
    """

    def __init__(self, gateway: MarketDataGateway) -> None:
        self._gateway = gateway

    async def refresh_prices(
        self,
        positions: list[Position],
        api_key: str | None,
    ) -> list[Position]:
        """Return *positions* with ``current_price`` updated from live quotes.

        Order is preserved. Each distinct non-cash ticker is quoted once.
        Without an API key the positions are returned unchanged.
        """
        if not api_key:
            logger.warning("No API key configured; skipping price refresh")
            return list(positions)

        tickers = list(
            dict.fromkeys(
                p.ticker.strip().upper()
                for p in positions
                if p.classification != PositionClass.CASH and p.ticker.strip()
            )
        )

        prices: dict[str, Decimal] = {}
        for ticker in tickers:
            try:
                quote = await self._gateway.get_quote(ticker, api_key)
            except DataFetchError as exc:
                logger.warning("Price refresh failed for %s, keeping last price: %s", ticker, exc)
                continue
            if quote.current <= 0:
                logger.warning("No usable price for %s, keeping last price", ticker)
                continue
            prices[ticker] = quote.current

        logger.info("Refreshed %d of %d ticker prices", len(prices), len(tickers))

        refreshed: list[Position] = []
        for p in positions:
            price = prices.get(p.ticker.strip().upper())
            if price is None or p.classification == PositionClass.CASH:
                refreshed.append(p)
            else:
                refreshed.append(p.model_copy(update={"current_price": price}))
        return refreshed

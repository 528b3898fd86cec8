"""Market data gateway over the EODHD HTTP API.

Wraps quotes, end-of-day candles, fundamentals, news, ticker search and
exchange symbol lists. Responses are normalized into typed Pydantic models
(see ``normalizers``) and cached in a ``ServiceCache`` with per-endpoint
TTLs. Each network-bound call makes exactly one upstream request; there is
no retry.

Two failure policies coexist and are declared in ``OPERATION_POLICIES``:
``get_quote`` propagates credential and upstream errors, every other
operation degrades to an empty (or ``None``) result. Degradable operations
consult the table on each failure, so flipping an entry to ``PROPAGATE``
makes that operation raise instead.
"""

from __future__ import annotations

import asyncio
import datetime
import json
import logging
import os
import urllib.parse
from collections.abc import Awaitable, Callable, Sequence
from types import TracebackType
from typing import Final, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter

from Wealth_Flow.models.enums import FailurePolicy, HistoryPeriod
from Wealth_Flow.models.market_data import (
    Candle,
    CompanyProfile,
    FundamentalData,
    NewsItem,
    Quote,
    SupportedTicker,
    TickerOverview,
    TickerSearchResult,
)
from Wealth_Flow.services._helpers import (
    DEFAULT_PERIOD,
    EODHD_SOURCE,
    EXTERNAL_CALL_TIMEOUT_SECONDS,
    compute_date_window,
    parse_period,
    trailing_window,
)
from Wealth_Flow.services.cache import (
    DATA_TYPE_FUNDAMENTALS,
    DATA_TYPE_HISTORICAL,
    DATA_TYPE_NEWS,
    DATA_TYPE_QUOTE,
    DATA_TYPE_TICKERS,
    ServiceCache,
    build_cache_key,
)
from Wealth_Flow.services.normalizers import (
    to_candles,
    to_fundamentals,
    to_news_items,
    to_quote,
    to_search_results,
    to_supported_tickers,
)
from Wealth_Flow.utils.exceptions import (
    CredentialMissingError,
    DataFetchError,
    MalformedResponseError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EODHD_BASE_URL: Final[str] = "https://eodhd.com/api"
SEARCH_RESULT_LIMIT: Final[int] = 15
NEWS_RESULT_LIMIT: Final[int] = 20
NEWS_WINDOW_DAYS: Final[int] = 7
DEFAULT_EXCHANGE: Final[str] = "US"

OPERATION_POLICIES: Final[dict[str, FailurePolicy]] = {
    "get_quote": FailurePolicy.PROPAGATE,
    "get_historical_data": FailurePolicy.DEGRADE,
    "get_fundamental_data": FailurePolicy.DEGRADE,
    "search_tickers": FailurePolicy.DEGRADE,
    "get_news": FailurePolicy.DEGRADE,
    "get_supported_tickers": FailurePolicy.DEGRADE,
}

# Intraday resolutions collapse to the shortest daily window
RESOLUTION_TO_PERIOD: Final[dict[str, HistoryPeriod]] = {
    "1": HistoryPeriod.ONE_DAY,
    "5": HistoryPeriod.ONE_DAY,
    "15": HistoryPeriod.ONE_DAY,
    "30": HistoryPeriod.ONE_DAY,
    "60": HistoryPeriod.ONE_WEEK,
    "D": HistoryPeriod.ONE_MONTH,
    "W": HistoryPeriod.SIX_MONTHS,
    "M": HistoryPeriod.ONE_YEAR,
}

_CANDLE_LIST: Final = TypeAdapter(list[Candle])
_NEWS_LIST: Final = TypeAdapter(list[NewsItem])
_TICKER_LIST: Final = TypeAdapter(list[SupportedTicker])


def resolve_base_url(base_url: str | None = None) -> str:
    """Return the provider URL, preferring *base_url* > ``EODHD_BASE_URL`` env var > default."""
    return (base_url or os.environ.get("EODHD_BASE_URL", EODHD_BASE_URL)).rstrip("/")


def _utc_today() -> datetime.date:
    return datetime.datetime.now(datetime.UTC).date()


class MarketDataGateway:
    """Async, cached access to the EODHD market-data API.

    Usage::

        cache = ServiceCache()
        async with MarketDataGateway(cache=cache) as gateway:
            quote = await gateway.get_quote("AAPL.US", api_key)
            candles = await gateway.get_historical_data("AAPL.US", "1M", api_key)
            profile = await gateway.get_fundamental_data("AAPL.US", api_key)

    Concurrent calls for the same cache key share one in-flight upstream
    request. Cache writes are stamped with the time the fetch started and
    the cache rejects a write older than the stored entry.
    """

    def __init__(
        self,
        cache: ServiceCache,
        *,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        today: Callable[[], datetime.date] | None = None,
    ) -> None:
        self._cache = cache
        self._base_url = resolve_base_url(base_url)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(connect=5.0, read=30.0, write=10.0, pool=5.0),
            limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
        )
        self._today = today or _utc_today
        self._in_flight: dict[str, asyncio.Task[str]] = {}

        logger.info("MarketDataGateway initialized: base_url=%s", self._base_url)

    async def aclose(self) -> None:
        """Close the httpx client if this gateway created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> MarketDataGateway:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Propagating operations
    # ------------------------------------------------------------------

    async def get_quote(self, ticker: str, api_key: str | None) -> Quote:
        """Return the latest quote for *ticker*.

        Args:
            ticker: Ticker symbol (e.g., ``"AAPL.US"``).
            api_key: EODHD API token.

        Raises:
            ValueError: If *ticker* is blank.
            CredentialMissingError: If *api_key* is empty.
            UpstreamError: On a non-2xx response or transport failure.
            MalformedResponseError: If the body is not JSON.
        """
        ticker = _normalize_ticker(ticker)
        if not api_key:
            raise _missing_key(ticker)

        async def fetch() -> str:
            body = await self._request_json(
                f"real-time/{_quote_path(ticker)}", api_key, ticker=ticker
            )
            quote = to_quote(ticker, body)
            logger.info("Fetched quote for %s: current=%s", ticker, quote.current)
            return quote.model_dump_json()

        payload = await self._cached_fetch(
            build_cache_key(DATA_TYPE_QUOTE, ticker), DATA_TYPE_QUOTE, fetch
        )
        return Quote.model_validate_json(payload)

    async def get_quotes(
        self,
        tickers: list[str],
        api_key: str | None,
    ) -> dict[str, Quote | Exception]:
        """Fetch quotes for several tickers concurrently.

        Uses ``asyncio.gather(..., return_exceptions=True)`` so one failure
        does not sink the batch. Blank entries are skipped. The caller bounds
        the fan-out by the size of *tickers*.

        Returns:
            Dict mapping each normalized ticker to its ``Quote`` or the
            ``Exception`` raised for it.
        """
        normalized = list(dict.fromkeys(t.strip().upper() for t in tickers if t.strip()))
        results = await asyncio.gather(
            *(self.get_quote(t, api_key) for t in normalized),
            return_exceptions=True,
        )

        batch: dict[str, Quote | Exception] = {}
        for ticker, result in zip(normalized, results, strict=True):
            if isinstance(result, Exception):
                logger.warning("Batch quote failed for %s: %s", ticker, result)
                batch[ticker] = result
            elif isinstance(result, BaseException):
                raise result
            else:
                batch[ticker] = result
        return batch

    async def get_ticker_overview(self, ticker: str, api_key: str | None) -> TickerOverview:
        """Fetch quote, fundamentals and news for one ticker concurrently.

        The quote keeps its propagating policy, so a failed quote fails the
        overview; fundamentals and news degrade independently.
        """
        ticker = _normalize_ticker(ticker)
        quote, fundamentals, news = await asyncio.gather(
            self.get_quote(ticker, api_key),
            self.get_fundamental_data(ticker, api_key),
            self.get_news(ticker, api_key),
        )
        return TickerOverview(ticker=ticker, quote=quote, fundamentals=fundamentals, news=news)

    # ------------------------------------------------------------------
    # Degrading operations
    # ------------------------------------------------------------------

    async def get_historical_data(
        self,
        ticker: str,
        period: HistoryPeriod | str = DEFAULT_PERIOD,
        api_key: str | None = None,
    ) -> list[Candle]:
        """Return daily candles for *ticker* over *period*, oldest first.

        Any failure, including a missing API key, yields ``[]``.
        """
        ticker = _normalize_ticker(ticker)
        resolved = parse_period(period)
        if not api_key:
            return self._on_failure("get_historical_data", _missing_key(ticker), [])

        async def fetch() -> str:
            start, end = compute_date_window(resolved, self._today())
            body = await self._request_json(
                f"eod/{_quote_path(ticker)}",
                api_key,
                ticker=ticker,
                params={"from": start.isoformat(), "to": end.isoformat(), "period": "d"},
            )
            candles = to_candles(body)
            logger.info(
                "Fetched %d candles for %s (%s: %s..%s)", len(candles), ticker, resolved, start, end
            )
            return _dump_list(candles)

        try:
            payload = await self._cached_fetch(
                build_cache_key(DATA_TYPE_HISTORICAL, ticker, resolved.value),
                DATA_TYPE_HISTORICAL,
                fetch,
            )
        except DataFetchError as exc:
            return self._on_failure("get_historical_data", exc, [])
        return _CANDLE_LIST.validate_json(payload)

    async def get_fundamental_data(
        self,
        ticker: str,
        api_key: str | None,
    ) -> FundamentalData | None:
        """Return profile and metrics for *ticker*, or None when unavailable."""
        ticker = _normalize_ticker(ticker)
        if not api_key:
            return self._on_failure("get_fundamental_data", _missing_key(ticker), None)

        async def fetch() -> str:
            body = await self._request_json(
                f"fundamentals/{_quote_path(ticker)}", api_key, ticker=ticker
            )
            fundamentals = to_fundamentals(ticker, body)
            logger.info("Fetched fundamentals for %s: %s", ticker, fundamentals.profile.name)
            return fundamentals.model_dump_json()

        try:
            payload = await self._cached_fetch(
                build_cache_key(DATA_TYPE_FUNDAMENTALS, ticker), DATA_TYPE_FUNDAMENTALS, fetch
            )
        except DataFetchError as exc:
            return self._on_failure("get_fundamental_data", exc, None)
        return FundamentalData.model_validate_json(payload)

    async def search_tickers(self, query: str, api_key: str | None) -> list[TickerSearchResult]:
        """Search tickers by symbol fragment or company name.

        Results are capped upstream at ``SEARCH_RESULT_LIMIT`` and not cached.
        """
        query = query.strip()
        if not query:
            return []
        if not api_key:
            return self._on_failure("search_tickers", _missing_key(query), [])

        try:
            body = await self._request_json(
                f"search/{_quote_path(query)}",
                api_key,
                ticker=query,
                params={"limit": str(SEARCH_RESULT_LIMIT)},
            )
        except DataFetchError as exc:
            return self._on_failure("search_tickers", exc, [])

        results = to_search_results(body)
        logger.debug("Search '%s' returned %d results", query, len(results))
        return results

    async def get_news(self, ticker: str, api_key: str | None) -> list[NewsItem]:
        """Return news for *ticker* from the trailing seven days."""
        ticker = _normalize_ticker(ticker)
        if not api_key:
            return self._on_failure("get_news", _missing_key(ticker), [])

        async def fetch() -> str:
            start, end = trailing_window(NEWS_WINDOW_DAYS, self._today())
            body = await self._request_json(
                "news",
                api_key,
                ticker=ticker,
                params={
                    "s": ticker,
                    "from": start.isoformat(),
                    "to": end.isoformat(),
                    "limit": str(NEWS_RESULT_LIMIT),
                },
            )
            items = to_news_items(body)
            logger.info("Fetched %d news items for %s", len(items), ticker)
            return _dump_list(items)

        try:
            payload = await self._cached_fetch(
                build_cache_key(DATA_TYPE_NEWS, ticker), DATA_TYPE_NEWS, fetch
            )
        except DataFetchError as exc:
            return self._on_failure("get_news", exc, [])
        return _NEWS_LIST.validate_json(payload)

    async def get_supported_tickers(
        self,
        exchange: str = DEFAULT_EXCHANGE,
        api_key: str | None = None,
    ) -> list[SupportedTicker]:
        """Return the symbol list for *exchange* (long TTL)."""
        exchange = exchange.strip().upper() or DEFAULT_EXCHANGE
        if not api_key:
            return self._on_failure("get_supported_tickers", _missing_key(exchange), [])

        async def fetch() -> str:
            body = await self._request_json(
                f"exchange-symbol-list/{_quote_path(exchange)}", api_key, ticker=exchange
            )
            tickers = to_supported_tickers(body)
            logger.info("Fetched %d symbols for exchange %s", len(tickers), exchange)
            return _dump_list(tickers)

        try:
            payload = await self._cached_fetch(
                build_cache_key(DATA_TYPE_TICKERS, exchange), DATA_TYPE_TICKERS, fetch
            )
        except DataFetchError as exc:
            return self._on_failure("get_supported_tickers", exc, [])
        return _TICKER_LIST.validate_json(payload)

    # ------------------------------------------------------------------
    # Compatibility helpers
    # ------------------------------------------------------------------

    async def get_company_profile(self, ticker: str, api_key: str | None) -> CompanyProfile | None:
        """Profile part of ``get_fundamental_data``."""
        data = await self.get_fundamental_data(ticker, api_key)
        return data.profile if data is not None else None

    async def get_basic_financials(
        self, ticker: str, api_key: str | None
    ) -> FundamentalData | None:
        """Alias of ``get_fundamental_data``."""
        return await self.get_fundamental_data(ticker, api_key)

    async def get_candles(self, ticker: str, resolution: str, api_key: str | None) -> list[Candle]:
        """Candles for a chart resolution code (``"D"``, ``"W"``, ``"60"``...)."""
        period = RESOLUTION_TO_PERIOD.get(str(resolution).upper(), DEFAULT_PERIOD)
        return await self.get_historical_data(ticker, period, api_key)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _cached_fetch(
        self,
        cache_key: str,
        data_type: str,
        fetch: Callable[[], Awaitable[str]],
    ) -> str:
        """Cache-first lookup that coalesces concurrent misses for one key."""
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        pending = self._in_flight.get(cache_key)
        if pending is None:
            pending = asyncio.create_task(self._fetch_and_store(cache_key, data_type, fetch))
            self._in_flight[cache_key] = pending
            pending.add_done_callback(lambda task: self._forget(cache_key, task))
        else:
            logger.debug("Joining in-flight request: %s", cache_key)

        # A cancelled caller must not cancel the fetch other callers share.
        return await asyncio.shield(pending)

    async def _fetch_and_store(
        self,
        cache_key: str,
        data_type: str,
        fetch: Callable[[], Awaitable[str]],
    ) -> str:
        started = self._cache.now()
        payload = await fetch()
        self._cache.set(cache_key, payload, self._cache.get_ttl(data_type), fetched_at=started)
        return payload

    def _on_failure(self, operation: str, exc: DataFetchError, empty: T) -> T:
        """Apply *operation*'s entry in ``OPERATION_POLICIES`` to *exc*.

        ``PROPAGATE`` re-raises; ``DEGRADE`` logs and returns *empty*.
        """
        if OPERATION_POLICIES[operation] is FailurePolicy.PROPAGATE:
            raise exc
        logger.warning("%s degraded for %s: %s", operation, exc.ticker, exc)
        return empty

    def _forget(self, cache_key: str, task: asyncio.Task[str]) -> None:
        if self._in_flight.get(cache_key) is task:
            del self._in_flight[cache_key]
        # Mark the exception retrieved even if every waiter was cancelled.
        if not task.cancelled():
            task.exception()

    async def _request_json(
        self,
        path: str,
        api_key: str,
        *,
        ticker: str,
        params: dict[str, str] | None = None,
    ) -> object:
        """Issue one GET against the provider and decode the JSON body.

        Raises:
            UpstreamError: On timeout, transport error, or non-2xx status.
            MalformedResponseError: If the body is not valid JSON.
        """
        query = {"api_token": api_key, "fmt": "json", **(params or {})}
        url = f"{self._base_url}/{path}"

        try:
            response = await asyncio.wait_for(
                self._client.get(url, params=query),
                timeout=EXTERNAL_CALL_TIMEOUT_SECONDS,
            )
        except TimeoutError as exc:
            raise UpstreamError(
                f"EODHD request timed out: /{path}",
                ticker=ticker,
                source=EODHD_SOURCE,
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(
                f"EODHD request failed for /{path}: {type(exc).__name__}",
                ticker=ticker,
                source=EODHD_SOURCE,
            ) from exc

        if not response.is_success:
            raise UpstreamError(
                f"EODHD returned HTTP {response.status_code} for /{path}",
                ticker=ticker,
                source=EODHD_SOURCE,
                http_status=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                f"EODHD returned a non-JSON body for /{path}",
                ticker=ticker,
                source=EODHD_SOURCE,
                http_status=response.status_code,
            ) from exc


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def _normalize_ticker(ticker: str) -> str:
    normalized = ticker.strip().upper()
    if not normalized:
        msg = "Ticker symbol must not be empty"
        raise ValueError(msg)
    return normalized


def _quote_path(segment: str) -> str:
    """Percent-encode a single URL path segment."""
    return urllib.parse.quote(segment, safe="")


def _dump_list(items: Sequence[BaseModel]) -> str:
    """Serialize a list of models to a JSON string."""
    return json.dumps([item.model_dump(mode="json") for item in items])


def _missing_key(ticker: str) -> CredentialMissingError:
    return CredentialMissingError(
        "EODHD API key is missing",
        ticker=ticker,
        source=EODHD_SOURCE,
    )

"""Schema mapping from EODHD response bodies to Wealth Flow models.

One pure function per endpoint. Each takes the decoded JSON body (of any
shape) and returns the normalized record(s). A field the provider omits,
nulls, or reports as ``"NA"`` maps to the model's default: 0 for numbers,
an empty string for text. A body of the wrong shape maps to the endpoint's
empty value instead of raising.
"""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal

from Wealth_Flow.models.market_data import (
    Candle,
    CompanyProfile,
    FundamentalData,
    MetricSet,
    NewsItem,
    Quote,
    SupportedTicker,
    TickerSearchResult,
)
from Wealth_Flow.services._helpers import (
    as_mapping,
    as_records,
    display_date,
    epoch_seconds,
    parse_timestamp,
    safe_decimal,
    safe_int,
    safe_str,
)

logger = logging.getLogger(__name__)

DEFAULT_SECURITY_TYPE = "Common Stock"
DEFAULT_NEWS_SOURCE = "News"


def to_quote(ticker: str, payload: object) -> Quote:
    """Map a ``/real-time/{ticker}`` body to a Quote."""
    data = as_mapping(payload)
    if not data:
        logger.warning("Quote body for %s is not an object; using zeros", ticker)
    return Quote(
        ticker=ticker,
        current=safe_decimal(data.get("close")),
        change=safe_decimal(data.get("change")),
        percent_change=safe_decimal(data.get("change_p")),
        high=safe_decimal(data.get("high")),
        low=safe_decimal(data.get("low")),
        open=safe_decimal(data.get("open")),
        prev_close=safe_decimal(data.get("previousClose")),
        volume=safe_int(data.get("volume")),
    )


def to_candles(payload: object) -> list[Candle]:
    """Map an ``/eod/{ticker}`` body to candles sorted by date ascending.

    Rows without a parseable ``date`` are skipped.
    """
    candles: list[Candle] = []
    for row in as_records(payload):
        stamp = parse_timestamp(row.get("date"))
        if stamp is None:
            logger.debug("Skipping EOD row without a usable date: %s", row.get("date"))
            continue
        candles.append(
            Candle(
                time=display_date(stamp.date()),
                timestamp=epoch_seconds(stamp),
                open=safe_decimal(row.get("open")),
                high=safe_decimal(row.get("high")),
                low=safe_decimal(row.get("low")),
                close=safe_decimal(row.get("close")),
                volume=safe_int(row.get("volume")),
            )
        )
    candles.sort(key=lambda c: c.timestamp)
    return candles


def to_fundamentals(ticker: str, payload: object) -> FundamentalData:
    """Map a nested ``/fundamentals/{ticker}`` document to FundamentalData.

    ``Highlights.DividendYield`` is a fraction upstream and a percentage here.
    """
    data = as_mapping(payload)
    general = as_mapping(data.get("General"))
    highlights = as_mapping(data.get("Highlights"))
    technicals = as_mapping(data.get("Technicals"))

    profile = CompanyProfile(
        ticker=ticker,
        name=safe_str(general.get("Name")),
        exchange=safe_str(general.get("Exchange")),
        sector=safe_str(general.get("Sector")),
        industry=safe_str(general.get("Industry")),
        description=safe_str(general.get("Description")),
        weburl=safe_str(general.get("WebURL")),
        ipo_date=safe_str(general.get("IPODate")),
        market_capitalization=safe_decimal(highlights.get("MarketCapitalization")),
    )
    metric = MetricSet(
        pe_ttm=safe_decimal(highlights.get("PERatio")),
        dividend_yield_pct=safe_decimal(highlights.get("DividendYield")) * Decimal("100"),
        week_52_high=safe_decimal(highlights.get("52WeekHigh")),
        week_52_low=safe_decimal(highlights.get("52WeekLow")),
        beta=safe_decimal(technicals.get("Beta")),
        book_value=safe_decimal(highlights.get("BookValue")),
        eps_estimate=safe_decimal(highlights.get("EarningsShare")),
    )
    return FundamentalData(profile=profile, metric=metric)


def to_search_results(payload: object) -> list[TickerSearchResult]:
    """Map a ``/search/{query}`` body. Items without a ``Code`` are dropped."""
    results: list[TickerSearchResult] = []
    for item in as_records(payload):
        code = safe_str(item.get("Code"))
        if not code:
            continue
        exchange = safe_str(item.get("Exchange"))
        results.append(
            TickerSearchResult(
                symbol=code,
                display_symbol=f"{code}.{exchange}" if exchange else code,
                description=safe_str(item.get("Name")),
                type=safe_str(item.get("Type"), DEFAULT_SECURITY_TYPE),
            )
        )
    return results


def to_news_items(payload: object) -> list[NewsItem]:
    """Map a ``/news`` body.

    Articles without a link get a random identifier, unique within the
    response.
    """
    items: list[NewsItem] = []
    seen_ids: set[str] = set()
    for article in as_records(payload):
        link = safe_str(article.get("link"))
        item_id = link if link and link not in seen_ids else uuid.uuid4().hex
        seen_ids.add(item_id)

        title = safe_str(article.get("title"))
        stamp = parse_timestamp(article.get("date"))
        items.append(
            NewsItem(
                id=item_id,
                headline=title,
                summary=safe_str(article.get("content"), title),
                url=link,
                source=safe_str(article.get("source"), DEFAULT_NEWS_SOURCE),
                published_at=epoch_seconds(stamp) if stamp is not None else 0,
                image=safe_str(article.get("image")) or None,
            )
        )
    return items


def to_supported_tickers(payload: object) -> list[SupportedTicker]:
    """Map an ``/exchange-symbol-list/{exchange}`` body."""
    return [
        SupportedTicker(
            symbol=safe_str(item.get("Code")),
            name=safe_str(item.get("Name")),
            exchange=safe_str(item.get("Exchange")),
            type=safe_str(item.get("Type")),
        )
        for item in as_records(payload)
        if safe_str(item.get("Code"))
    ]

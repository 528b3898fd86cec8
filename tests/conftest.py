"""Shared test fixtures for the Wealth Flow test suite.

Provides realistic EODHD response bodies and sample domain models so tests
don't need to inline large construction blocks.
"""

import datetime
from decimal import Decimal

import pytest

from Wealth_Flow.models import (
    Candle,
    CompanyProfile,
    FundamentalData,
    MetricSet,
    NewsItem,
    Position,
    PositionClass,
    Quote,
)

# ---------------------------------------------------------------------------
# Raw provider bodies
# ---------------------------------------------------------------------------


@pytest.fixture()
def realtime_body() -> dict[str, object]:
    """A ``/real-time/AAPL.US`` response body."""
    return {
        "code": "AAPL.US",
        "timestamp": 1710532800,
        "gmtoffset": 0,
        "open": 171.17,
        "high": 172.62,
        "low": 170.29,
        "close": 172.62,
        "volume": 121664700,
        "previousClose": 173.0,
        "change": -0.38,
        "change_p": -0.2197,
    }


@pytest.fixture()
def eod_body() -> list[dict[str, object]]:
    """An ``/eod/AAPL.US`` response body, deliberately out of order."""
    return [
        {
            "date": "2024-03-15",
            "open": 171.17,
            "high": 172.62,
            "low": 170.29,
            "close": 172.62,
            "adjusted_close": 172.62,
            "volume": 121664700,
        },
        {
            "date": "2024-03-14",
            "open": 172.91,
            "high": 174.31,
            "low": 172.05,
            "close": 173.0,
            "adjusted_close": 173.0,
            "volume": 72913500,
        },
    ]


@pytest.fixture()
def fundamentals_body() -> dict[str, object]:
    """A trimmed ``/fundamentals/AAPL.US`` document."""
    return {
        "General": {
            "Code": "AAPL",
            "Name": "Apple Inc",
            "Exchange": "NASDAQ",
            "Sector": "Technology",
            "Industry": "Consumer Electronics",
            "Description": "Apple Inc. designs, manufactures, and markets smartphones.",
            "WebURL": "https://www.apple.com",
            "IPODate": "1980-12-12",
        },
        "Highlights": {
            "MarketCapitalization": 2649250000000,
            "PERatio": 26.73,
            "DividendYield": 0.0056,
            "52WeekHigh": 199.62,
            "52WeekLow": 164.08,
            "BookValue": 4.793,
            "EarningsShare": 6.43,
        },
        "Technicals": {"Beta": 1.264},
    }


@pytest.fixture()
def search_body() -> list[dict[str, object]]:
    """A ``/search/AAPL`` response body."""
    return [
        {
            "Code": "AAPL",
            "Exchange": "US",
            "Name": "Apple Inc",
            "Type": "Common Stock",
            "Country": "USA",
            "Currency": "USD",
        },
        {"Code": "AAPL", "Exchange": "MX", "Name": "Apple Inc", "Country": "Mexico"},
    ]


@pytest.fixture()
def news_body() -> list[dict[str, object]]:
    """A ``/news?s=AAPL.US`` response body."""
    return [
        {
            "date": "2024-03-15T14:30:00+00:00",
            "title": "Apple shares edge lower",
            "content": "Apple stock slipped in afternoon trading.",
            "link": "https://example.com/apple-edge-lower",
            "symbols": ["AAPL.US"],
        },
        {
            "date": "2024-03-14T09:00:00+00:00",
            "title": "iPhone sales outlook",
            "content": "",
            "link": "",
        },
    ]


# ---------------------------------------------------------------------------
# Domain models
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_quote() -> Quote:
    """A normalized AAPL quote."""
    return Quote(
        ticker="AAPL.US",
        current=Decimal("172.62"),
        change=Decimal("-0.38"),
        percent_change=Decimal("-0.2197"),
        high=Decimal("172.62"),
        low=Decimal("170.29"),
        open=Decimal("171.17"),
        prev_close=Decimal("173.0"),
        volume=121664700,
    )


@pytest.fixture()
def sample_candles() -> list[Candle]:
    """Two daily AAPL candles, oldest first."""
    return [
        Candle(
            time="3/14/2024",
            timestamp=1710374400,
            open=Decimal("172.91"),
            high=Decimal("174.31"),
            low=Decimal("172.05"),
            close=Decimal("173.0"),
            volume=72913500,
        ),
        Candle(
            time="3/15/2024",
            timestamp=1710460800,
            open=Decimal("171.17"),
            high=Decimal("172.62"),
            low=Decimal("170.29"),
            close=Decimal("172.62"),
            volume=121664700,
        ),
    ]


@pytest.fixture()
def sample_fundamentals() -> FundamentalData:
    """Normalized AAPL fundamentals."""
    return FundamentalData(
        profile=CompanyProfile(
            ticker="AAPL.US",
            name="Apple Inc",
            exchange="NASDAQ",
            sector="Technology",
            industry="Consumer Electronics",
            market_capitalization=Decimal("2649250000000"),
        ),
        metric=MetricSet(pe_ttm=Decimal("26.73"), dividend_yield_pct=Decimal("0.56")),
    )


@pytest.fixture()
def sample_news() -> list[NewsItem]:
    """One normalized news item."""
    return [
        NewsItem(
            id="https://example.com/apple-edge-lower",
            headline="Apple shares edge lower",
            summary="Apple stock slipped in afternoon trading.",
            url="https://example.com/apple-edge-lower",
            published_at=1710513000,
        )
    ]


@pytest.fixture()
def sample_positions() -> list[Position]:
    """A small portfolio: two pillars, one small cap, and cash. Total value 10,000."""
    return [
        Position(
            ticker="AAPL.US",
            name="Apple",
            quantity=Decimal("20"),
            entry_price=Decimal("150"),
            current_price=Decimal("200"),
            sector="Technology",
            classification=PositionClass.PILLAR,
            target_percentage=Decimal("30"),
        ),
        Position(
            ticker="JNJ.US",
            name="Johnson & Johnson",
            quantity=Decimal("25"),
            entry_price=Decimal("160"),
            current_price=Decimal("120"),
            sector="Health Care",
            classification=PositionClass.PILLAR,
            target_percentage=Decimal("40"),
        ),
        Position(
            ticker="PLTR.US",
            name="Palantir",
            quantity=Decimal("100"),
            entry_price=Decimal("25"),
            current_price=Decimal("20"),
            sector="Technology",
            classification=PositionClass.SMALL_CAP,
            target_percentage=Decimal("20"),
        ),
        Position(
            ticker="CASH",
            name="Cash",
            quantity=Decimal("1"),
            entry_price=Decimal("1000"),
            sector="Cash",
            classification=PositionClass.CASH,
            target_percentage=Decimal("10"),
        ),
    ]


@pytest.fixture()
def fixed_today() -> datetime.date:
    """The 'today' used for date-window assertions."""
    return datetime.date(2024, 3, 15)

"""Market data models: quotes, candles, fundamentals, news, and ticker lookups.

Every record is frozen: each fetch produces a fresh snapshot. Fields the
provider omits carry explicit defaults (0, empty string, or None for the
optional image) so downstream arithmetic never meets an unset value.
Price fields use Decimal with string serializers to avoid silent float
conversion in JSON roundtrips.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, field_serializer


class Quote(BaseModel):
    """Latest price snapshot for one ticker."""

    model_config = ConfigDict(frozen=True)

    ticker: str
    current: Decimal = Decimal("0")
    change: Decimal = Decimal("0")
    percent_change: Decimal = Decimal("0")
    high: Decimal = Decimal("0")
    low: Decimal = Decimal("0")
    open: Decimal = Decimal("0")
    prev_close: Decimal = Decimal("0")
    volume: int = 0

    @field_serializer("current", "change", "percent_change", "high", "low", "open", "prev_close")
    def serialize_decimal(self, value: Decimal) -> str:
        """Serialize Decimal fields as strings to preserve precision."""
        return str(value)


class Candle(BaseModel):
    """One daily open-high-low-close-volume point in a chart series."""

    model_config = ConfigDict(frozen=True)

    time: str
    timestamp: int
    open: Decimal = Decimal("0")
    high: Decimal = Decimal("0")
    low: Decimal = Decimal("0")
    close: Decimal = Decimal("0")
    volume: int = 0

    @field_serializer("open", "high", "low", "close")
    def serialize_decimal(self, value: Decimal) -> str:
        """Serialize Decimal fields as strings to preserve precision."""
        return str(value)


class CompanyProfile(BaseModel):
    """Descriptive data about an issuer."""

    model_config = ConfigDict(frozen=True)

    ticker: str
    name: str = ""
    exchange: str = ""
    sector: str = ""
    industry: str = ""
    description: str = ""
    weburl: str = ""
    ipo_date: str = ""
    market_capitalization: Decimal = Decimal("0")

    @field_serializer("market_capitalization")
    def serialize_decimal(self, value: Decimal) -> str:
        """Serialize Decimal fields as strings to preserve precision."""
        return str(value)


class MetricSet(BaseModel):
    """Valuation metrics. A metric the provider lacks is 0."""

    model_config = ConfigDict(frozen=True)

    pe_ttm: Decimal = Decimal("0")
    dividend_yield_pct: Decimal = Decimal("0")
    week_52_high: Decimal = Decimal("0")
    week_52_low: Decimal = Decimal("0")
    beta: Decimal = Decimal("0")
    book_value: Decimal = Decimal("0")
    eps_estimate: Decimal = Decimal("0")

    @field_serializer(
        "pe_ttm",
        "dividend_yield_pct",
        "week_52_high",
        "week_52_low",
        "beta",
        "book_value",
        "eps_estimate",
    )
    def serialize_decimal(self, value: Decimal) -> str:
        """Serialize Decimal fields as strings to preserve precision."""
        return str(value)


class FundamentalData(BaseModel):
    """Profile plus metrics for one ticker."""

    model_config = ConfigDict(frozen=True)

    profile: CompanyProfile
    metric: MetricSet


class NewsItem(BaseModel):
    """A news article about a ticker.

    ``published_at`` is the article time in epoch seconds.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    headline: str = ""
    summary: str = ""
    url: str = ""
    source: str = "News"
    published_at: int = 0
    image: str | None = None


class TickerSearchResult(BaseModel):
    """One hit from a free-text ticker search."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    display_symbol: str
    description: str = ""
    type: str = "Common Stock"


class SupportedTicker(BaseModel):
    """An entry from an exchange's symbol list."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    name: str = ""
    exchange: str = ""
    type: str = ""


class TickerOverview(BaseModel):
    """Quote, fundamentals and recent news fetched together for one ticker."""

    model_config = ConfigDict(frozen=True)

    ticker: str
    quote: Quote
    fundamentals: FundamentalData | None = None
    news: list[NewsItem] = []

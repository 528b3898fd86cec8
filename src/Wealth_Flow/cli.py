"""CLI entry point for Wealth Flow: market data from the terminal.

Provides the ``wealth-flow`` command with subcommands for quotes, history,
fundamentals, news, ticker search and exchange symbol lists, plus
``set-key`` to store a user's EODHD key in the preference database and
``serve`` to run the JSON API.

This is the ONLY module where console output is allowed. All other modules
use ``logging``. Async internals are bridged to typer's synchronous
interface via ``asyncio.run()``.
"""

from __future__ import annotations

import asyncio
import datetime
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from Wealth_Flow.data import Database, Repository
from Wealth_Flow.logging_config import configure_logging
from Wealth_Flow.models.enums import HistoryPeriod
from Wealth_Flow.models.market_data import Candle, FundamentalData, NewsItem, Quote
from Wealth_Flow.services.cache import ServiceCache, ttl_overrides_from_env
from Wealth_Flow.services.credentials import API_KEY_ENV_VAR, CredentialStore
from Wealth_Flow.services.market_data import DEFAULT_EXCHANGE, MarketDataGateway

app = typer.Typer(name="wealth-flow", help="Market data and portfolio tooling on EODHD")

# Rich console for formatted output
console = Console()

# ---------------------------------------------------------------------------
# Shared options
# ---------------------------------------------------------------------------

ApiKeyOption = Annotated[
    str | None,
    typer.Option("--api-key", envvar=API_KEY_ENV_VAR, help="EODHD API token"),
]
UserOption = Annotated[
    str | None,
    typer.Option("--user", "-u", help="Look up the API key stored for this user"),
]
VerboseOption = Annotated[
    bool, typer.Option("--verbose", "-v", help="Enable debug logging")
]
QuietOption = Annotated[bool, typer.Option("--quiet", "-q", help="Suppress info logging")]


async def _resolve_api_key(api_key: str | None, user: str | None) -> str | None:
    """Explicit ``--api-key`` wins; otherwise read the user's stored key."""
    if api_key:
        return api_key
    if not user:
        return None
    async with Database() as db:
        store = CredentialStore(repository=Repository(db))
        return await store.get_api_key(user)


def _new_gateway() -> MarketDataGateway:
    return MarketDataGateway(cache=ServiceCache(ttl_overrides=ttl_overrides_from_env()))


def _missing_key_exit() -> typer.Exit:
    console.print(
        f"[red]No EODHD API key configured. Pass --api-key, set {API_KEY_ENV_VAR}, "
        "or store one with 'wealth-flow set-key'.[/red]"
    )
    return typer.Exit(code=1)


# ---------------------------------------------------------------------------
# quote
# ---------------------------------------------------------------------------


@app.command()
def quote(
    tickers: Annotated[list[str], typer.Argument(help="One or more ticker symbols (AAPL.US)")],
    api_key: ApiKeyOption = None,
    user: UserOption = None,
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """Show the latest quote for one or more tickers."""
    configure_logging(verbose=verbose, quiet=quiet)
    asyncio.run(_quote_async(tickers=tickers, api_key=api_key, user=user))


async def _quote_async(*, tickers: list[str], api_key: str | None, user: str | None) -> None:
    key = await _resolve_api_key(api_key, user)
    if not key:
        raise _missing_key_exit()

    async with _new_gateway() as gateway:
        results = await gateway.get_quotes(tickers, key)

    _render_quotes(results)
    if any(isinstance(result, Exception) for result in results.values()):
        raise typer.Exit(code=1)


def _render_quotes(results: dict[str, Quote | Exception]) -> None:
    table = Table(title="Quotes")
    table.add_column("Ticker", style="bold")
    table.add_column("Price", justify="right")
    table.add_column("Change", justify="right")
    table.add_column("Change %", justify="right")
    table.add_column("Open", justify="right")
    table.add_column("High", justify="right")
    table.add_column("Low", justify="right")
    table.add_column("Volume", justify="right")

    for ticker, result in results.items():
        if isinstance(result, Exception):
            table.add_row(ticker, f"[red]{result}[/red]", "", "", "", "", "", "")
            continue
        color = "green" if result.change >= 0 else "red"
        table.add_row(
            ticker,
            f"{result.current:,.2f}",
            f"[{color}]{result.change:+,.2f}[/{color}]",
            f"[{color}]{result.percent_change:+.2f}%[/{color}]",
            f"{result.open:,.2f}",
            f"{result.high:,.2f}",
            f"{result.low:,.2f}",
            f"{result.volume:,}",
        )

    console.print(table)


# ---------------------------------------------------------------------------
# history
# ---------------------------------------------------------------------------


@app.command()
def history(
    ticker: Annotated[str, typer.Argument(help="Ticker symbol")],
    period: Annotated[
        HistoryPeriod, typer.Option("--period", "-p", help="Look-back window")
    ] = HistoryPeriod.ONE_MONTH,
    api_key: ApiKeyOption = None,
    user: UserOption = None,
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """Show daily candles for a ticker."""
    configure_logging(verbose=verbose, quiet=quiet)
    asyncio.run(_history_async(ticker=ticker, period=period, api_key=api_key, user=user))


async def _history_async(
    *, ticker: str, period: HistoryPeriod, api_key: str | None, user: str | None
) -> None:
    key = await _resolve_api_key(api_key, user)
    async with _new_gateway() as gateway:
        candles = await gateway.get_historical_data(ticker, period, key)

    if not candles:
        console.print(f"[yellow]No historical data available for {ticker.upper()}.[/yellow]")
        raise typer.Exit(code=1)
    _render_candles(ticker.upper(), period, candles)


def _render_candles(ticker: str, period: HistoryPeriod, candles: list[Candle]) -> None:
    table = Table(title=f"{ticker} ({period.value})")
    table.add_column("Date")
    table.add_column("Open", justify="right")
    table.add_column("High", justify="right")
    table.add_column("Low", justify="right")
    table.add_column("Close", justify="right")
    table.add_column("Volume", justify="right")

    for candle in candles:
        table.add_row(
            candle.time,
            f"{candle.open:,.2f}",
            f"{candle.high:,.2f}",
            f"{candle.low:,.2f}",
            f"{candle.close:,.2f}",
            f"{candle.volume:,}",
        )

    console.print(table)


# ---------------------------------------------------------------------------
# fundamentals
# ---------------------------------------------------------------------------


@app.command()
def fundamentals(
    ticker: Annotated[str, typer.Argument(help="Ticker symbol")],
    api_key: ApiKeyOption = None,
    user: UserOption = None,
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """Show company profile and key metrics."""
    configure_logging(verbose=verbose, quiet=quiet)
    asyncio.run(_fundamentals_async(ticker=ticker, api_key=api_key, user=user))


async def _fundamentals_async(*, ticker: str, api_key: str | None, user: str | None) -> None:
    key = await _resolve_api_key(api_key, user)
    async with _new_gateway() as gateway:
        data = await gateway.get_fundamental_data(ticker, key)

    if data is None:
        console.print(f"[yellow]No fundamentals available for {ticker.upper()}.[/yellow]")
        raise typer.Exit(code=1)
    _render_fundamentals(data)


def _render_fundamentals(data: FundamentalData) -> None:
    profile = data.profile
    metric = data.metric

    console.print(f"\n[bold underline]{profile.name or profile.ticker}[/bold underline]")
    console.print(f"Ticker: {profile.ticker}   Exchange: {profile.exchange or '-'}")
    console.print(f"Sector: {profile.sector or '-'}   Industry: {profile.industry or '-'}")
    if profile.weburl:
        console.print(f"Web: {profile.weburl}")

    table = Table(show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Market cap", f"{profile.market_capitalization:,.0f}")
    table.add_row("P/E (TTM)", f"{metric.pe_ttm:.2f}")
    table.add_row("Dividend yield", f"{metric.dividend_yield_pct:.2f}%")
    table.add_row("52w high", f"{metric.week_52_high:,.2f}")
    table.add_row("52w low", f"{metric.week_52_low:,.2f}")
    table.add_row("Beta", f"{metric.beta:.2f}")
    table.add_row("Book value", f"{metric.book_value:,.2f}")
    table.add_row("EPS estimate", f"{metric.eps_estimate:.2f}")
    console.print(table)

    if profile.description:
        console.print(f"\n[dim]{profile.description}[/dim]")


# ---------------------------------------------------------------------------
# news
# ---------------------------------------------------------------------------


@app.command()
def news(
    ticker: Annotated[str, typer.Argument(help="Ticker symbol")],
    api_key: ApiKeyOption = None,
    user: UserOption = None,
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """Show news from the last seven days."""
    configure_logging(verbose=verbose, quiet=quiet)
    asyncio.run(_news_async(ticker=ticker, api_key=api_key, user=user))


async def _news_async(*, ticker: str, api_key: str | None, user: str | None) -> None:
    key = await _resolve_api_key(api_key, user)
    async with _new_gateway() as gateway:
        items = await gateway.get_news(ticker, key)

    if not items:
        console.print(f"[yellow]No recent news for {ticker.upper()}.[/yellow]")
        return
    _render_news(items)


def _render_news(items: list[NewsItem]) -> None:
    for item in items:
        published = datetime.datetime.fromtimestamp(item.published_at, tz=datetime.UTC)
        console.print(f"[bold]{item.headline}[/bold]")
        console.print(f"[dim]{published:%Y-%m-%d %H:%M} UTC  {item.source}[/dim]")
        if item.url:
            console.print(f"[blue]{item.url}[/blue]")
        console.print()


# ---------------------------------------------------------------------------
# search
# ---------------------------------------------------------------------------


@app.command()
def search(
    query: Annotated[str, typer.Argument(help="Symbol fragment or company name")],
    api_key: ApiKeyOption = None,
    user: UserOption = None,
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """Search for tickers."""
    configure_logging(verbose=verbose, quiet=quiet)
    asyncio.run(_search_async(query=query, api_key=api_key, user=user))


async def _search_async(*, query: str, api_key: str | None, user: str | None) -> None:
    key = await _resolve_api_key(api_key, user)
    async with _new_gateway() as gateway:
        results = await gateway.search_tickers(query, key)

    if not results:
        console.print(f"[yellow]No matches for '{query}'.[/yellow]")
        return

    table = Table(title=f"Search: {query}")
    table.add_column("Symbol", style="bold")
    table.add_column("Description")
    table.add_column("Type")
    for result in results:
        table.add_row(result.display_symbol, result.description, result.type)
    console.print(table)


# ---------------------------------------------------------------------------
# tickers
# ---------------------------------------------------------------------------


@app.command()
def tickers(
    exchange: Annotated[str, typer.Argument(help="Exchange code")] = DEFAULT_EXCHANGE,
    limit: Annotated[int, typer.Option(help="Maximum rows to display")] = 50,
    api_key: ApiKeyOption = None,
    user: UserOption = None,
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """List symbols traded on an exchange."""
    configure_logging(verbose=verbose, quiet=quiet)
    asyncio.run(_tickers_async(exchange=exchange, limit=limit, api_key=api_key, user=user))


async def _tickers_async(
    *, exchange: str, limit: int, api_key: str | None, user: str | None
) -> None:
    key = await _resolve_api_key(api_key, user)
    async with _new_gateway() as gateway:
        symbols = await gateway.get_supported_tickers(exchange, key)

    if not symbols:
        console.print(f"[yellow]No symbols available for exchange {exchange.upper()}.[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title=f"{exchange.upper()}: {len(symbols):,} symbols")
    table.add_column("Symbol", style="bold")
    table.add_column("Name")
    table.add_column("Type")
    for symbol in symbols[:limit]:
        table.add_row(symbol.symbol, symbol.name, symbol.type)
    console.print(table)
    if len(symbols) > limit:
        console.print(f"[dim]... {len(symbols) - limit:,} more[/dim]")


# ---------------------------------------------------------------------------
# set-key
# ---------------------------------------------------------------------------


@app.command("set-key")
def set_key(
    user: Annotated[str, typer.Argument(help="User id to store the key for")],
    key: Annotated[str, typer.Argument(help="EODHD API token (empty string clears it)")],
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """Store (or clear) a user's EODHD API key in the preference database."""
    configure_logging(verbose=verbose, quiet=quiet)
    asyncio.run(_set_key_async(user=user, key=key))


async def _set_key_async(*, user: str, key: str) -> None:
    async with Database() as db:
        prefs = await Repository(db).save_api_key(user, key)

    if prefs.eodhd_api_key is None:
        console.print(f"[yellow]API key cleared for {user}.[/yellow]")
    else:
        console.print(f"[green]API key saved for {user}.[/green]")



# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


@app.command()
def serve(
    host: Annotated[str, typer.Option(help="Interface to bind")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port to listen on")] = 8000,
    db_path: Annotated[
        str | None, typer.Option("--db-path", help="Preference database path")
    ] = None,
) -> None:
    """Run the JSON API with uvicorn."""
    import uvicorn

    from Wealth_Flow.web.app import create_app

    uvicorn.run(create_app(db_path=db_path), host=host, port=port, log_config=None)

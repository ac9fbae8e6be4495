import sys
import json
import asyncio
import logging
import click
from datetime import datetime, timedelta, timezone
from typing import Optional
from .errors import ENVELOPE_VERSION, format_error, ValidationError
from .logging import configure_logging
from .config import load_env_file, get_openai_key, get_model, get_request_timeout
from .http import HttpClient
from .symbols import SymbolResolver, SymbolCache, load_overrides
from .providers.binance import BinanceBackend
from .providers.coingecko import CoinGeckoBackend
from .providers.treenews import TreeNewsClient, DEFAULT_LIMIT
from .providers.openai import OpenAIClassifier
from .correlator import PriceCorrelator, time_ago
from .charts import ChartSeriesProvider
from .pipeline import NewsAnalyzer
from .export.analysis_export import export_analysis

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def _parse_when(value: Optional[str], name: str) -> Optional[datetime]:
    if value is None:
        return None
    try:
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        raise click.BadParameter(f"{name} must be an ISO timestamp (e.g. 2026-01-25T10:00:00Z).")
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _build_market(http: HttpClient, symbols_path: Optional[str]):
    """Resolver, primary and secondary backends sharing one symbol cache."""
    overrides = load_overrides(symbols_path) if symbols_path else None
    resolver = SymbolResolver(cache=SymbolCache(), overrides=overrides)
    secondary = CoinGeckoBackend(http, resolver=resolver)
    primary = BinanceBackend(http)
    return resolver, [primary, secondary]


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
def cli(verbose):
    """newsimpact: correlate crypto news with price moves."""
    configure_logging(logging.DEBUG if verbose else logging.INFO)
    load_env_file()


@cli.command()
@click.option("--hours", default=2.0, show_default=True, type=float, help="Look-back window in hours")
@click.option("--limit", default=DEFAULT_LIMIT, show_default=True, type=int, help="Records requested from the feed")
@click.option("--api-key", default=None, help="OpenAI API key (defaults to OPENAI_API_KEY)")
@click.option("--model", default=None, help="Classification model")
@click.option("--workers", default=1, show_default=True, type=int, help="Highlights enriched in parallel")
@click.option("--symbols", "symbols_path", default=None, help="YAML file with extra ticker aliases")
@click.option("--out", default=None, help="Export root directory (JSON + Markdown)")
def analyze(hours, limit, api_key, model, workers, symbols_path, out):
    """
    Fetch recent news, keep the market-moving items and measure the price
    move of each mentioned token since publication.
    """
    if hours <= 0:
        raise click.BadParameter("--hours must be > 0.")
    if limit < 1:
        raise click.BadParameter("--limit must be >= 1.")
    if workers < 1:
        raise click.BadParameter("--workers must be >= 1.")

    key = api_key or get_openai_key()
    if not key:
        raise ValidationError("OpenAI API key is missing. Set OPENAI_API_KEY or pass --api-key.")

    async def _run():
        async with HttpClient(timeout=get_request_timeout()) as http:
            resolver, backends = _build_market(http, symbols_path)
            analyzer = NewsAnalyzer(
                TreeNewsClient(http),
                OpenAIClassifier(http, key, model=model or get_model()),
                PriceCorrelator(backends, resolver=resolver),
                concurrency=workers,
            )
            return await analyzer.analyze(hours_back=hours, limit=limit)

    result = asyncio.run(_run())
    payload = result.model_dump(mode="json", exclude={"highlights": {"__all__": {"source_item"}}})

    if out:
        payload = {"result": payload, "exports": export_analysis(payload, out_root=out)}
    _print_json(payload)


@cli.command()
@click.option("--ticker", required=True, help="Token ticker, e.g. BTC")
@click.option("--at", "at_value", required=True, help="Anchor time (ISO 8601, UTC if no offset)")
@click.option("--symbols", "symbols_path", default=None, help="YAML file with extra ticker aliases")
def price(ticker, at_value, symbols_path):
    """Percent price change of a ticker since a timestamp."""
    anchor = _parse_when(at_value, "at")

    async def _run():
        async with HttpClient(timeout=get_request_timeout()) as http:
            resolver, backends = _build_market(http, symbols_path)
            correlator = PriceCorrelator(backends, resolver=resolver)
            symbol = await resolver.resolve(ticker)
            change = await correlator.correlate(ticker, anchor)
            return symbol, change

    symbol, change = asyncio.run(_run())
    _print_json({
        "ticker": ticker.strip().upper(),
        "anchor": anchor.isoformat(),
        "time_ago": time_ago(anchor),
        "price_change": change,
        "symbol": symbol.model_dump(mode="json") if symbol else None,
    })


@cli.command()
@click.option("--ticker", required=True, help="Token ticker, e.g. BTC")
@click.option("--start", required=True, help="Series start (ISO 8601)")
@click.option("--end", default=None, help="Series end (ISO 8601, default now)")
@click.option("--symbols", "symbols_path", default=None, help="YAML file with extra ticker aliases")
def chart(ticker, start, end, symbols_path):
    """OHLC candles between two timestamps."""
    start_dt = _parse_when(start, "start")
    end_dt = _parse_when(end, "end") or datetime.now(timezone.utc)
    if start_dt > end_dt:
        raise click.BadParameter("start must be before end.")
    if end_dt - start_dt > timedelta(days=90):
        logger.warning("Range exceeds 90 days; fallback data will be truncated")

    async def _run():
        async with HttpClient(timeout=get_request_timeout()) as http:
            _, backends = _build_market(http, symbols_path)
            return await ChartSeriesProvider(backends).series(ticker, start_dt, end_dt)

    points = asyncio.run(_run())
    _print_json([p.model_dump(mode="json") for p in points])


@cli.command()
@click.option("--ticker", required=True, help="Token ticker, e.g. BTC")
@click.option("--symbols", "symbols_path", default=None, help="YAML file with extra ticker aliases")
def resolve(ticker, symbols_path):
    """Show the market identifiers for a ticker."""

    async def _run():
        async with HttpClient(timeout=get_request_timeout()) as http:
            resolver, _ = _build_market(http, symbols_path)
            return await resolver.resolve(ticker)

    symbol = asyncio.run(_run())
    _print_json(symbol.model_dump(mode="json") if symbol else None)


@cli.command()
def version():
    """Print version information."""
    _print_json({"version": __version__})


def _print_json(data):
    """Helper to print standard JSON envelope."""
    payload = {
        "ok": True,
        "data": data,
        "meta": {
            "version": ENVELOPE_VERSION
        }
    }
    click.echo(json.dumps(payload, indent=2, default=str, ensure_ascii=False))


def main():
    """Entry point for the CLI."""
    try:
        cli(standalone_mode=False)
    except Exception as e:
        if isinstance(e, click.exceptions.Exit):
            sys.exit(e.exit_code)
        if isinstance(e, click.exceptions.Abort):
            sys.exit(130)

        print(format_error(e))
        sys.exit(1)

if __name__ == "__main__":
    main()

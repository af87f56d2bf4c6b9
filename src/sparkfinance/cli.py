"""Command-line interface for the market data service."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from sparkfinance.config import Settings, parse_keys
from sparkfinance.domain.models import AssetType, WatchlistItem
from sparkfinance.errors import FinanceError, StorageError, user_message
from sparkfinance.logging import setup_logger, write_chart_report
from sparkfinance.runtime import build_service
from sparkfinance.service import MarketDataService


def parse_watchlist_item(value: str) -> WatchlistItem:
    """Parse ``TICKER`` or ``TICKER:stock|crypto``; a bare ticker is a stock."""
    ticker, _, kind = value.partition(":")
    ticker = ticker.strip().upper()
    if not ticker:
        raise argparse.ArgumentTypeError(f"Invalid watchlist entry '{value}'")
    try:
        asset_type = AssetType(kind.strip().lower() or AssetType.STOCK)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"Unknown asset type '{kind}' (expected stock or crypto)"
        ) from exc
    return WatchlistItem(ticker=ticker, type=asset_type)


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(description="Stock and crypto market data aggregator")
    parser.add_argument("--keys", type=str, help="Comma-separated Alpha Vantage API keys")
    parser.add_argument("--state-db", type=str, help="SQLite state database path")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    watchlist = commands.add_parser("watchlist", help="Fetch quotes for a watchlist")
    watchlist.add_argument("items", nargs="+", type=parse_watchlist_item, metavar="TICKER[:TYPE]")

    chart = commands.add_parser("chart", help="Fetch roughly a month of daily closes")
    chart.add_argument("item", type=parse_watchlist_item, metavar="TICKER[:TYPE]")
    chart.add_argument("--html", type=str, help="Also write an interactive chart to this path")

    search = commands.add_parser("search", help="Search stock symbols")
    search.add_argument("keywords", type=str)

    overview = commands.add_parser("overview", help="Company fundamentals")
    overview.add_argument("symbol", type=str)

    commands.add_parser("movers", help="Top gainers, losers and most active")

    news = commands.add_parser("news", help="Latest news for a ticker")
    news.add_argument("item", type=parse_watchlist_item, metavar="TICKER[:TYPE]")

    rsi = commands.add_parser("rsi", help="Relative strength index")
    rsi.add_argument("symbol", type=str)
    rsi.add_argument("--period", type=int, default=14)

    macd = commands.add_parser("macd", help="MACD with crossover signal")
    macd.add_argument("symbol", type=str)

    bbands = commands.add_parser("bbands", help="Bollinger Bands")
    bbands.add_argument("symbol", type=str)
    bbands.add_argument("--period", type=int, default=20)
    bbands.add_argument("--nb-dev", type=int, default=2)
    bbands.add_argument("--price", type=float, help="Current price to place against the bands")

    commands.add_parser("quota", help="Remaining requests for the active key and the pool")

    add_key = commands.add_parser("add-key", help="Add an API key to the rotation")
    add_key.add_argument("key", type=str)

    find = commands.add_parser("find", help="Resolve a ticker to stock or crypto")
    find.add_argument("ticker", type=str)

    commands.add_parser("housekeeping", help="Remove expired cache entries")
    return parser


def apply_cli_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Apply CLI values onto environment-derived settings."""
    overrides: dict[str, object] = {}
    if args.keys:
        overrides["alpha_vantage_api_keys"] = parse_keys(args.keys)
    if args.state_db:
        overrides["state_db_path"] = args.state_db
    if args.log_level:
        overrides["log_level"] = args.log_level
    if getattr(args, "period", None) is not None and args.period <= 0:
        raise ValueError("--period must be positive")
    if getattr(args, "nb_dev", None) is not None and args.nb_dev <= 0:
        raise ValueError("--nb-dev must be positive")
    return settings.with_overrides(**overrides)


def run_command(service: MarketDataService, args: argparse.Namespace) -> Any:
    """Execute one subcommand and return a JSON-serializable result."""
    command = args.command
    if command == "watchlist":
        assets = service.fetch_watchlist_data(args.items)
        return [
            {
                **asset.to_record(),
                "message": user_message(asset.error) if asset.is_degraded else None,
            }
            for asset in assets
        ]
    if command == "chart":
        points = service.fetch_asset_daily_chart(args.item)
        if args.html:
            write_chart_report(args.item.ticker, points, args.html)
        return [point.to_record() for point in points]
    if command == "search":
        return [result.to_record() for result in service.search_symbol(args.keywords)]
    if command == "overview":
        overview = service.fetch_company_overview(args.symbol.upper())
        return overview.to_record() if overview else None
    if command == "movers":
        movers = service.fetch_top_movers()
        return movers.to_record() if movers else None
    if command == "news":
        items = service.fetch_news_for_ticker(args.item.ticker, args.item.type)
        return [item.to_record() for item in items]
    if command == "rsi":
        rsi = service.fetch_rsi(args.symbol.upper(), args.period)
        return rsi.to_record() if rsi else None
    if command == "macd":
        macd = service.fetch_macd(args.symbol.upper())
        return macd.to_record() if macd else None
    if command == "bbands":
        bands = service.fetch_bollinger_bands(
            args.symbol.upper(), args.period, args.nb_dev, args.price
        )
        return bands.to_record() if bands else None
    if command == "quota":
        return {
            **service.get_remaining_requests().to_record(),
            "keyCount": service.get_api_key_count(),
            "keys": service.get_key_usage(),
        }
    if command == "add-key":
        added = service.add_api_key(args.key)
        return {"added": added, "keyCount": service.get_api_key_count()}
    if command == "find":
        match = service.find_ticker(args.ticker)
        return match.to_record() if match else None
    if command == "housekeeping":
        return {"removed": service.clear_expired_cache()}
    raise ValueError(f"Unknown command '{command}'")


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = apply_cli_overrides(Settings.from_env(), args)
    except ValueError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    setup_logger(settings.log_level, settings.log_file)
    try:
        service = build_service(settings)
    except StorageError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1

    try:
        result = run_command(service, args)
    except FinanceError as exc:
        print(f"{user_message(exc.kind)} ({exc})", file=sys.stderr)
        return 1
    finally:
        service.close()

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())

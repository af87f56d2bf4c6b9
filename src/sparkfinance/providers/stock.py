"""Stock quotes, charts and reference data from Alpha Vantage."""

from __future__ import annotations

import logging
import threading
from typing import Any

import pandas as pd

from sparkfinance.cache.ttl_cache import TtlCache
from sparkfinance.config import CacheTtl
from sparkfinance.domain.models import (
    AssetType,
    ChartDataPoint,
    CompanyOverview,
    FinancialAsset,
    SearchResult,
    TopMover,
    TopMoversData,
    WatchlistItem,
)
from sparkfinance.errors import ErrorKind, FinanceError, RequestCancelledError
from sparkfinance.http.alpha_vantage import AlphaVantageClient
from sparkfinance.providers.base import as_float, as_int, decode_list, time_series_frame
from sparkfinance.utils.time import Clock, now_ms, one_month_before

CHART_POINTS = 30
TOP_MOVERS_LIMIT = 10


class StockProvider:
    """Key-rotated stock data adapter.

    Watchlist quotes are fetched strictly one after another; pacing is left
    to the client's token bucket so the shared per-minute budget holds no
    matter which caller issues the requests.
    """

    def __init__(
        self,
        client: AlphaVantageClient,
        cache: TtlCache,
        ttl: CacheTtl | None = None,
        clock: Clock = now_ms,
    ) -> None:
        self.client = client
        self.cache = cache
        self.ttl = ttl or CacheTtl()
        self.clock = clock
        self.logger = logging.getLogger("sparkfinance.providers.stock")

    def fetch_quotes(
        self,
        items: list[WatchlistItem],
        cancel_event: threading.Event | None = None,
    ) -> list[FinancialAsset]:
        results: list[FinancialAsset] = []
        for item in items:
            if cancel_event is not None and cancel_event.is_set():
                results.append(FinancialAsset.zeroed(item, RequestCancelledError.kind))
                continue
            try:
                results.append(self.fetch_quote(item, cancel_event))
            except FinanceError as exc:
                self.logger.warning("Failed to fetch stock data for %s: %s", item.ticker, exc)
                results.append(FinancialAsset.zeroed(item, exc.kind))
            except Exception:
                self.logger.exception("Unexpected failure fetching stock data for %s", item.ticker)
                results.append(FinancialAsset.zeroed(item, ErrorKind.API_ERROR))
        return results

    def fetch_quote(
        self,
        item: WatchlistItem,
        cancel_event: threading.Event | None = None,
    ) -> FinancialAsset:
        """Fetch one quote; a provider answer without data yields a zeroed asset."""
        cache_key = self.cache.cache_key("stock_quote", item.ticker)
        cached = self.cache.get_decoded(cache_key, FinancialAsset.from_record)
        if cached is not None:
            return cached

        payload = self.client.query(
            {"function": "GLOBAL_QUOTE", "symbol": item.ticker},
            cancel_event=cancel_event,
        )
        quote = payload.get("Global Quote")
        if not isinstance(quote, dict) or not quote:
            self.logger.warning("No data for stock %s", item.ticker)
            return FinancialAsset.zeroed(item)

        price = as_float(quote.get("05. price"))
        asset = FinancialAsset(
            ticker=item.ticker,
            type=AssetType.STOCK,
            price=price,
            change24h=as_float(quote.get("10. change percent")),
            sparkline=[
                as_float(quote.get("02. open"), price),
                as_float(quote.get("03. high"), price),
                as_float(quote.get("04. low"), price),
                price,
            ],
        )
        self.cache.set(cache_key, asset.to_record(), self.ttl.ms("quote"))
        return asset

    def fetch_chart(self, ticker: str) -> list[ChartDataPoint]:
        cache_key = self.cache.cache_key("chart", f"stock_{ticker}")
        cached = self.cache.get_decoded(cache_key, decode_list(ChartDataPoint.from_record))
        if cached is not None:
            return cached

        try:
            payload = self.client.query(
                {"function": "TIME_SERIES_DAILY", "symbol": ticker, "outputsize": "compact"}
            )
        except FinanceError as exc:
            self.logger.warning("Failed to fetch daily chart for stock %s: %s", ticker, exc)
            return []

        series = payload.get("Time Series (Daily)")
        if not isinstance(series, dict) or not series:
            return []
        frame = time_series_frame(series, limit=CHART_POINTS)
        if "4. close" not in frame.columns:
            return []
        cutoff = pd.Timestamp(one_month_before(self.clock()))
        closes = frame.loc[frame.index >= cutoff, "4. close"].dropna()
        points = [
            ChartDataPoint(time=int(timestamp.value // 1_000_000), price=float(price))
            for timestamp, price in closes.items()
        ]
        if points:
            self.cache.set(cache_key, [point.to_record() for point in points], self.ttl.ms("chart"))
        return points

    def search_symbol(self, keywords: str) -> list[SearchResult]:
        query = (keywords or "").strip()
        if not query:
            return []
        cache_key = self.cache.cache_key("search", query.lower())
        cached = self.cache.get_decoded(cache_key, decode_list(SearchResult.from_record))
        if cached is not None:
            return cached

        try:
            payload = self.client.query({"function": "SYMBOL_SEARCH", "keywords": query})
        except FinanceError as exc:
            self.logger.warning("Symbol search failed for %r: %s", query, exc)
            return []

        matches = payload.get("bestMatches")
        if not isinstance(matches, list):
            return []
        results = [
            SearchResult(
                symbol=str(match.get("1. symbol", "")),
                name=str(match.get("2. name", "")),
                type=str(match.get("3. type", "")),
                region=str(match.get("4. region", "")),
                match_score=as_float(match.get("9. matchScore")),
            )
            for match in matches
            if isinstance(match, dict) and match.get("1. symbol")
        ]
        if results:
            self.cache.set(
                cache_key, [result.to_record() for result in results], self.ttl.ms("quote")
            )
        return results

    def fetch_company_overview(self, symbol: str) -> CompanyOverview | None:
        cache_key = self.cache.cache_key("company", symbol)
        cached = self.cache.get_decoded(cache_key, CompanyOverview.from_record)
        if cached is not None:
            return cached

        try:
            payload = self.client.query({"function": "OVERVIEW", "symbol": symbol})
        except FinanceError as exc:
            self.logger.warning("Failed to fetch company overview for %s: %s", symbol, exc)
            return None

        if not payload.get("Symbol"):
            return None
        overview = CompanyOverview(
            symbol=str(payload["Symbol"]),
            name=str(payload.get("Name") or symbol),
            description=str(payload.get("Description") or "No description available"),
            sector=str(payload.get("Sector") or "Unknown"),
            industry=str(payload.get("Industry") or "Unknown"),
            market_cap=as_float(payload.get("MarketCapitalization")),
            pe_ratio=as_float(payload.get("PERatio")),
            dividend_yield=as_float(payload.get("DividendYield")),
            eps=as_float(payload.get("EPS")),
            high_52_week=as_float(payload.get("52WeekHigh")),
            low_52_week=as_float(payload.get("52WeekLow")),
        )
        self.cache.set(cache_key, overview.to_record(), self.ttl.ms("company"))
        return overview

    def fetch_top_movers(self) -> TopMoversData | None:
        cache_key = self.cache.cache_key("top_movers", "daily")
        cached = self.cache.get_decoded(cache_key, TopMoversData.from_record)
        if cached is not None:
            return cached

        try:
            payload = self.client.query({"function": "TOP_GAINERS_LOSERS"})
        except FinanceError as exc:
            self.logger.warning("Failed to fetch top movers: %s", exc)
            return None

        movers = TopMoversData(
            gainers=self._parse_movers(payload.get("top_gainers")),
            losers=self._parse_movers(payload.get("top_losers")),
            most_active=self._parse_movers(payload.get("most_actively_traded")),
        )
        self.cache.set(cache_key, movers.to_record(), self.ttl.ms("top_movers"))
        return movers

    @staticmethod
    def _parse_movers(items: Any) -> list[TopMover]:
        if not isinstance(items, list):
            return []
        return [
            TopMover(
                ticker=str(item.get("ticker", "")),
                price=as_float(item.get("price")),
                change_amount=as_float(item.get("change_amount")),
                change_percent=as_float(item.get("change_percentage")),
                volume=as_int(item.get("volume")),
            )
            for item in items[:TOP_MOVERS_LIMIT]
            if isinstance(item, dict)
        ]

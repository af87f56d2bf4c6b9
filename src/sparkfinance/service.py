"""Public market data surface used by the CLI and embedding applications."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor

from sparkfinance.cache.ttl_cache import TtlCache
from sparkfinance.config import COMMON_CRYPTOS
from sparkfinance.domain.models import (
    AssetType,
    BollingerBandsData,
    ChartDataPoint,
    CompanyOverview,
    FinancialAsset,
    MACDData,
    NewsItem,
    RemainingRequests,
    RSIData,
    SearchResult,
    TickerMatch,
    TopMoversData,
    WatchlistItem,
)
from sparkfinance.errors import ErrorKind, FinanceError
from sparkfinance.keys.rotation import ApiKeyManager
from sparkfinance.providers.crypto import CryptoProvider
from sparkfinance.providers.news import NewsProvider
from sparkfinance.providers.stock import StockProvider
from sparkfinance.providers.technicals import TechnicalIndicatorProvider
from sparkfinance.state.store import KeyValueStore


def mask_key(key: str) -> str:
    return f"***{key[-4:]}" if len(key) > 4 else "***"


class MarketDataService:
    """Aggregates the stock and crypto adapters behind one facade."""

    def __init__(
        self,
        *,
        stocks: StockProvider,
        crypto: CryptoProvider,
        news: NewsProvider,
        technicals: TechnicalIndicatorProvider,
        keys: ApiKeyManager,
        cache: TtlCache,
        store: KeyValueStore | None = None,
    ) -> None:
        self.stocks = stocks
        self.crypto = crypto
        self.news = news
        self.technicals = technicals
        self.keys = keys
        self.cache = cache
        self.store = store
        self.logger = logging.getLogger("sparkfinance.service")

    def fetch_watchlist_data(
        self,
        watchlist: list[WatchlistItem],
        cancel_event: threading.Event | None = None,
    ) -> list[FinancialAsset]:
        """Return exactly one asset per watchlist entry, in input order.

        Stocks and crypto are fetched concurrently; a ticker missing from
        either adapter's answer comes back zeroed with its error kind.
        """
        if not watchlist:
            return []

        unique: dict[tuple[str, AssetType], WatchlistItem] = {}
        for item in watchlist:
            unique.setdefault(item.identity, item)
        stock_items = [item for key, item in unique.items() if key[1] is AssetType.STOCK]
        crypto_items = [item for key, item in unique.items() if key[1] is AssetType.CRYPTO]

        by_identity: dict[tuple[str, AssetType], FinancialAsset] = {}
        failures: dict[AssetType, ErrorKind] = {}
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="watchlist") as pool:
            futures: dict[AssetType, Future[list[FinancialAsset]]] = {}
            if stock_items:
                futures[AssetType.STOCK] = pool.submit(
                    self.stocks.fetch_quotes, stock_items, cancel_event
                )
            if crypto_items:
                futures[AssetType.CRYPTO] = pool.submit(self.crypto.fetch_quotes, crypto_items)
            for asset_type, future in futures.items():
                try:
                    assets = future.result()
                except FinanceError as exc:
                    self.logger.warning("Failed to fetch %s quotes: %s", asset_type, exc)
                    failures[asset_type] = exc.kind
                    continue
                except Exception:
                    self.logger.exception("Unexpected failure fetching %s quotes", asset_type)
                    failures[asset_type] = ErrorKind.API_ERROR
                    continue
                for asset in assets:
                    by_identity.setdefault(asset.identity, asset)

        results: list[FinancialAsset] = []
        for item in watchlist:
            asset = by_identity.get(item.identity)
            if asset is None:
                asset = FinancialAsset.zeroed(
                    item, failures.get(AssetType(item.type), ErrorKind.NO_DATA)
                )
            results.append(asset)
        return results

    def fetch_asset_daily_chart(self, item: WatchlistItem) -> list[ChartDataPoint]:
        if AssetType(item.type) is AssetType.STOCK:
            return self.stocks.fetch_chart(item.ticker)
        return self.crypto.fetch_chart(item.ticker)

    def search_symbol(self, keywords: str) -> list[SearchResult]:
        return self.stocks.search_symbol(keywords)

    def fetch_company_overview(self, symbol: str) -> CompanyOverview | None:
        return self.stocks.fetch_company_overview(symbol)

    def fetch_top_movers(self) -> TopMoversData | None:
        return self.stocks.fetch_top_movers()

    def fetch_news_for_ticker(self, ticker: str, asset_type: AssetType | str) -> list[NewsItem]:
        return self.news.fetch_for_ticker(ticker, asset_type)

    def fetch_rsi(self, symbol: str, time_period: int = 14) -> RSIData | None:
        return self.technicals.fetch_rsi(symbol, time_period)

    def fetch_macd(self, symbol: str) -> MACDData | None:
        return self.technicals.fetch_macd(symbol)

    def fetch_bollinger_bands(
        self,
        symbol: str,
        time_period: int = 20,
        nb_dev: int = 2,
        current_price: float | None = None,
    ) -> BollingerBandsData | None:
        return self.technicals.fetch_bollinger_bands(symbol, time_period, nb_dev, current_price)

    def get_remaining_requests(self) -> RemainingRequests:
        return self.keys.remaining_requests()

    def add_api_key(self, new_key: str) -> bool:
        return self.keys.add_key(new_key)

    def get_api_key_count(self) -> int:
        return self.keys.key_count()

    def get_key_usage(self) -> list[dict[str, object]]:
        """Per-key request counts in the current windows, keys masked."""
        state = self.keys.state()
        return [
            {
                "index": index,
                "key": mask_key(key),
                "active": index == state.key_index,
                "minuteRequests": len(state.usage_for(key).minute_requests),
                "dayRequests": len(state.usage_for(key).day_requests),
            }
            for index, key in enumerate(self.keys.keys)
        ]

    def find_ticker(self, ticker: str) -> TickerMatch | None:
        """Resolve a ticker to crypto (known symbols) or the best stock match."""
        upper = ticker.strip().upper()
        if not upper:
            return None
        if upper in COMMON_CRYPTOS:
            return TickerMatch(id=upper.lower(), name=COMMON_CRYPTOS[upper], type=AssetType.CRYPTO)
        results = self.search_symbol(upper)
        if not results:
            return None
        best = results[0]
        return TickerMatch(id=best.symbol.lower(), name=best.name, type=AssetType.STOCK)

    def clear_expired_cache(self) -> int:
        removed = self.cache.clear_expired()
        if removed:
            self.logger.info("Removed %s expired cache entries", removed)
        return removed

    def close(self) -> None:
        self.stocks.client.session.close()
        self.crypto.session.close()
        if self.store is not None:
            self.store.close()

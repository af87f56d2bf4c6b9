"""Ticker-scoped news from the stock provider's sentiment feed."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sparkfinance.cache.ttl_cache import TtlCache
from sparkfinance.config import CacheTtl
from sparkfinance.domain.models import AssetType, NewsItem
from sparkfinance.errors import FinanceError
from sparkfinance.http.alpha_vantage import AlphaVantageClient
from sparkfinance.providers.base import decode_list
from sparkfinance.utils.time import Clock, now_ms

NEWS_LIMIT = 5
PUBLISHED_FORMAT = "%Y%m%dT%H%M%S"


def parse_published(value: str | None, fallback_ms: int) -> float:
    """Convert ``YYYYMMDDTHHMMSS`` (UTC) to epoch seconds."""
    if value:
        try:
            published = datetime.strptime(value.strip()[:15], PUBLISHED_FORMAT)
            return published.replace(tzinfo=UTC).timestamp()
        except ValueError:
            pass
    return fallback_ms / 1000


class NewsProvider:
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
        self.logger = logging.getLogger("sparkfinance.providers.news")

    def fetch_for_ticker(self, ticker: str, asset_type: AssetType | str) -> list[NewsItem]:
        kind = AssetType(asset_type)
        cache_key = self.cache.cache_key("news", f"{kind}_{ticker}")
        cached = self.cache.get_decoded(cache_key, decode_list(NewsItem.from_record))
        if cached is not None:
            return cached

        params = {"function": "NEWS_SENTIMENT", "limit": str(NEWS_LIMIT)}
        if kind is AssetType.STOCK:
            params["tickers"] = ticker
        else:
            # The feed has no per-coin filter on the free tier.
            params["topics"] = "blockchain"

        try:
            payload = self.client.query(params)
        except FinanceError as exc:
            self.logger.warning("Failed to fetch news for %s: %s", ticker, exc)
            return []

        feed = payload.get("feed")
        if not isinstance(feed, list):
            return []
        now = self.clock()
        news = [
            NewsItem(
                id=index,
                headline=str(item.get("title") or "Untitled"),
                summary=str(item.get("summary") or ""),
                url=str(item.get("url") or ""),
                source=str(item.get("source") or "Unknown"),
                datetime=parse_published(item.get("time_published"), now),
            )
            for index, item in enumerate(feed[:NEWS_LIMIT])
            if isinstance(item, dict)
        ]
        if news:
            self.cache.set(cache_key, [item.to_record() for item in news], self.ttl.ms("news"))
        return news

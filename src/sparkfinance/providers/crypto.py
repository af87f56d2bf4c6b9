"""Crypto quotes and charts from FreeCryptoAPI."""

from __future__ import annotations

import logging
import math
import random
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import requests

from sparkfinance.cache.ttl_cache import TtlCache
from sparkfinance.config import DEFAULT_FREECRYPTO_BASE_URL, CacheTtl
from sparkfinance.domain.models import AssetType, ChartDataPoint, FinancialAsset, WatchlistItem
from sparkfinance.errors import ErrorKind, FinanceError
from sparkfinance.http.fetch import fetch_json
from sparkfinance.providers.base import as_float, decode_list
from sparkfinance.utils.time import Clock, iso_date, ms_to_datetime, now_ms, one_month_before

SPARKLINE_POINTS = 24


def synthesize_sparkline(
    high: float,
    low: float,
    price: float,
    rng: random.Random,
    points: int = SPARKLINE_POINTS,
) -> list[float]:
    """Approximate an intraday trend from the day's high/low.

    The provider only reports the range, so the curve is a sine swing
    between low and high with a little jitter, ending on the live price.
    """
    span = high - low
    sparkline = [
        low + span * (0.5 + 0.3 * math.sin(index / (points - 1) * math.pi * 2) + 0.2 * rng.random())
        for index in range(points)
    ]
    sparkline[-1] = price
    return sparkline


class CryptoProvider:
    """Crypto adapter; quotes for a watchlist are fetched concurrently."""

    def __init__(
        self,
        cache: TtlCache,
        *,
        api_key: str,
        base_url: str = DEFAULT_FREECRYPTO_BASE_URL,
        ttl: CacheTtl | None = None,
        session: requests.Session | None = None,
        timeout: float = 15.0,
        max_retries: int = 3,
        max_workers: int = 8,
        rng: random.Random | None = None,
        clock: Clock = now_ms,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.cache = cache
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.ttl = ttl or CacheTtl()
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_retries = max_retries
        self.max_workers = max_workers
        self.rng = rng or random.Random()
        self.clock = clock
        self.sleep = sleep
        self.logger = logging.getLogger("sparkfinance.providers.crypto")

    def fetch_quotes(self, items: list[WatchlistItem]) -> list[FinancialAsset]:
        if not items:
            return []
        workers = min(self.max_workers, len(items))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="crypto-quote") as pool:
            return list(pool.map(self._fetch_quote_or_zero, items))

    def fetch_quote(self, item: WatchlistItem) -> FinancialAsset:
        cache_key = self.cache.cache_key("crypto_quote", item.ticker)
        cached = self.cache.get_decoded(cache_key, FinancialAsset.from_record)
        if cached is not None:
            return cached

        payload = self._get("getData", {"symbol": item.ticker})
        symbols = payload.get("symbols")
        if payload.get("status") != "success" or not symbols or not isinstance(symbols, list):
            self.logger.warning("No data for %s", item.ticker)
            return FinancialAsset.zeroed(item)

        quote: dict[str, Any] = symbols[0] if isinstance(symbols[0], dict) else {}
        price = as_float(quote.get("last"))
        high = as_float(quote.get("highest"), price)
        low = as_float(quote.get("lowest"), price)
        asset = FinancialAsset(
            ticker=item.ticker,
            type=AssetType.CRYPTO,
            price=price,
            change24h=as_float(quote.get("daily_change_percentage")),
            sparkline=synthesize_sparkline(high, low, price, self.rng),
            sparkline_approximate=True,
        )
        self.cache.set(cache_key, asset.to_record(), self.ttl.ms("quote"))
        return asset

    def fetch_chart(self, ticker: str) -> list[ChartDataPoint]:
        cache_key = self.cache.cache_key("chart", f"crypto_{ticker}")
        cached = self.cache.get_decoded(cache_key, decode_list(ChartDataPoint.from_record))
        if cached is not None:
            return cached

        now = self.clock()
        params = {
            "symbol": f"{ticker}-USDT",
            "start_date": iso_date(one_month_before(now)),
            "end_date": iso_date(ms_to_datetime(now)),
        }
        try:
            payload = self._get("getTimeframe", params)
        except FinanceError as exc:
            self.logger.warning("Failed to fetch daily chart for crypto %s: %s", ticker, exc)
            return []

        rows = payload.get("result")
        if payload.get("status") != "success" or not isinstance(rows, list):
            return []
        points = sorted(
            (
                ChartDataPoint(
                    time=int(as_float(row.get("time_close")) * 1000),
                    price=as_float(row.get("close")),
                )
                for row in rows
                if isinstance(row, dict) and row.get("time_close") is not None
            ),
            key=lambda point: point.time,
        )
        if points:
            self.cache.set(cache_key, [point.to_record() for point in points], self.ttl.ms("chart"))
        return points

    def _fetch_quote_or_zero(self, item: WatchlistItem) -> FinancialAsset:
        try:
            return self.fetch_quote(item)
        except FinanceError as exc:
            self.logger.warning("Failed to fetch data for %s: %s", item.ticker, exc)
            return FinancialAsset.zeroed(item, exc.kind)
        except Exception:
            self.logger.exception("Unexpected failure fetching data for %s", item.ticker)
            return FinancialAsset.zeroed(item, ErrorKind.API_ERROR)

    def _get(self, endpoint: str, params: dict[str, str]) -> dict[str, Any]:
        payload = fetch_json(
            self.session,
            f"{self.base_url}/{endpoint}",
            {**params, "token": self.api_key},
            timeout=self.timeout,
            max_retries=self.max_retries,
            sleep=self.sleep,
        )
        return payload if isinstance(payload, dict) else {}

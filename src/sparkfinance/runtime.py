"""Runtime wiring for the market data service."""

from __future__ import annotations

import logging

import requests

from sparkfinance.cache.ttl_cache import TtlCache
from sparkfinance.config import Settings
from sparkfinance.http.alpha_vantage import AlphaVantageClient
from sparkfinance.http.throttle import TokenBucket
from sparkfinance.keys.rotation import ApiKeyManager
from sparkfinance.providers.crypto import CryptoProvider
from sparkfinance.providers.news import NewsProvider
from sparkfinance.providers.stock import StockProvider
from sparkfinance.providers.technicals import TechnicalIndicatorProvider
from sparkfinance.service import MarketDataService
from sparkfinance.state.sqlite_store import SqliteKeyValueStore
from sparkfinance.state.store import KeyValueStore

USER_AGENT = "sparkfinance/0.1"


def build_store(settings: Settings) -> KeyValueStore:
    """Build the durable store shared by the cache and key rotation."""
    return SqliteKeyValueStore(settings.state_db_path)


def build_key_manager(settings: Settings, store: KeyValueStore) -> ApiKeyManager:
    return ApiKeyManager(
        settings.alpha_vantage_api_keys,
        store,
        prefix=settings.cache_prefix,
        requests_per_minute=settings.requests_per_minute,
        requests_per_day=settings.requests_per_day,
    )


def build_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})
    return session


def build_service(settings: Settings, store: KeyValueStore | None = None) -> MarketDataService:
    """Wire adapters, cache, key rotation and throttle from settings."""
    logger = logging.getLogger("sparkfinance.runtime")
    store = store or build_store(settings)
    cache = TtlCache(store, settings.cache_prefix)
    keys = build_key_manager(settings, store)
    if keys.key_count() == 0:
        logger.warning("No Alpha Vantage API keys configured; stock data will be unavailable")
    if not settings.freecrypto_api_key:
        logger.warning("FREECRYPTO_API_KEY is not set; crypto requests will likely fail")

    client = AlphaVantageClient(
        keys,
        base_url=settings.alpha_vantage_base_url,
        session=build_session(),
        throttle=TokenBucket.per_minute(settings.stock_requests_per_minute, settings.stock_burst),
        queue_timeout=settings.stock_queue_timeout_seconds,
        timeout=settings.http_timeout_seconds,
        max_retries=settings.max_retries,
    )
    crypto = CryptoProvider(
        cache,
        api_key=settings.freecrypto_api_key,
        base_url=settings.freecrypto_base_url,
        ttl=settings.cache_ttl,
        session=build_session(),
        timeout=settings.http_timeout_seconds,
        max_retries=settings.max_retries,
        max_workers=settings.crypto_max_workers,
    )
    return MarketDataService(
        stocks=StockProvider(client, cache, settings.cache_ttl),
        crypto=crypto,
        news=NewsProvider(client, cache, settings.cache_ttl),
        technicals=TechnicalIndicatorProvider(client),
        keys=keys,
        cache=cache,
        store=store,
    )

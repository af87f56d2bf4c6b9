"""Environment and CLI runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Self

try:
    from dotenv import load_dotenv
except ImportError:
    load_dotenv = None

from sparkfinance.errors import ConfigError

DEFAULT_ALPHA_VANTAGE_BASE_URL = "https://www.alphavantage.co/query"
DEFAULT_FREECRYPTO_BASE_URL = "https://api.freecryptoapi.com/v1"
DEFAULT_CACHE_PREFIX = "spark_finance_"

# Tickers resolved as crypto without a provider round trip.
COMMON_CRYPTOS: dict[str, str] = {
    "BTC": "Bitcoin",
    "ETH": "Ethereum",
    "SOL": "Solana",
    "XRP": "XRP",
    "DOGE": "Dogecoin",
    "ADA": "Cardano",
    "AVAX": "Avalanche",
    "MATIC": "Polygon",
    "LINK": "Chainlink",
    "UNI": "Uniswap",
    "LTC": "Litecoin",
    "ATOM": "Cosmos",
    "ETC": "Ethereum Classic",
    "SHIB": "Shiba Inu",
    "APT": "Aptos",
    "ARB": "Arbitrum",
    "OP": "Optimism",
    "NEAR": "NEAR Protocol",
}


def parse_keys(value: str | None) -> tuple[str, ...]:
    """Parse a comma-separated API key list, dropping blanks and duplicates."""
    if not value:
        return ()
    keys: list[str] = []
    for item in value.split(","):
        key = item.strip()
        if key and key not in keys:
            keys.append(key)
    return tuple(keys)


def parse_positive_int(value: str | None, default: int, *, field_name: str) -> int:
    """Parse a positive integer env value, falling back to the default when unset."""
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise ConfigError(f"{field_name} must be an integer") from exc
    if parsed <= 0:
        raise ConfigError(f"{field_name} must be positive")
    return parsed


def parse_positive_float(value: str | None, default: float, *, field_name: str) -> float:
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value.strip())
    except ValueError as exc:
        raise ConfigError(f"{field_name} must be a number") from exc
    if parsed <= 0:
        raise ConfigError(f"{field_name} must be positive")
    return parsed


@dataclass(frozen=True)
class CacheTtl:
    """Per-data-type cache lifetimes in seconds."""

    quote: int = 300
    chart: int = 1800
    news: int = 900
    company: int = 86400
    top_movers: int = 600

    def ms(self, data_type: str) -> int:
        """Return the TTL for a data type in milliseconds."""
        return int(getattr(self, data_type)) * 1000


@dataclass(frozen=True)
class Settings:
    """Immutable runtime settings."""

    alpha_vantage_api_keys: tuple[str, ...] = ()
    alpha_vantage_base_url: str = DEFAULT_ALPHA_VANTAGE_BASE_URL
    freecrypto_api_key: str = ""
    freecrypto_base_url: str = DEFAULT_FREECRYPTO_BASE_URL
    requests_per_minute: int = 5
    requests_per_day: int = 25
    stock_requests_per_minute: float = 5.0
    stock_burst: int = 5
    stock_queue_timeout_seconds: float = 120.0
    http_timeout_seconds: float = 15.0
    max_retries: int = 3
    crypto_max_workers: int = 8
    cache_prefix: str = DEFAULT_CACHE_PREFIX
    cache_ttl: CacheTtl = field(default_factory=CacheTtl)
    state_db_path: str = "state/sparkfinance.db"
    log_level: str = "INFO"
    log_file: str | None = None

    @classmethod
    def from_env(cls) -> Self:
        """Create settings from environment variables."""
        if load_dotenv is not None:
            load_dotenv()
        defaults = CacheTtl()
        cache_ttl = CacheTtl(
            quote=parse_positive_int(
                os.getenv("CACHE_TTL_QUOTE_SECONDS"), defaults.quote, field_name="cache_ttl_quote"
            ),
            chart=parse_positive_int(
                os.getenv("CACHE_TTL_CHART_SECONDS"), defaults.chart, field_name="cache_ttl_chart"
            ),
            news=parse_positive_int(
                os.getenv("CACHE_TTL_NEWS_SECONDS"), defaults.news, field_name="cache_ttl_news"
            ),
            company=parse_positive_int(
                os.getenv("CACHE_TTL_COMPANY_SECONDS"),
                defaults.company,
                field_name="cache_ttl_company",
            ),
            top_movers=parse_positive_int(
                os.getenv("CACHE_TTL_TOP_MOVERS_SECONDS"),
                defaults.top_movers,
                field_name="cache_ttl_top_movers",
            ),
        )
        raw = cls(
            alpha_vantage_api_keys=parse_keys(os.getenv("ALPHA_VANTAGE_API_KEYS")),
            alpha_vantage_base_url=str(
                os.getenv("ALPHA_VANTAGE_BASE_URL", DEFAULT_ALPHA_VANTAGE_BASE_URL)
            ).strip(),
            freecrypto_api_key=str(os.getenv("FREECRYPTO_API_KEY", "")).strip(),
            freecrypto_base_url=str(
                os.getenv("FREECRYPTO_BASE_URL", DEFAULT_FREECRYPTO_BASE_URL)
            ).strip(),
            requests_per_minute=parse_positive_int(
                os.getenv("REQUESTS_PER_MINUTE"), 5, field_name="requests_per_minute"
            ),
            requests_per_day=parse_positive_int(
                os.getenv("REQUESTS_PER_DAY"), 25, field_name="requests_per_day"
            ),
            stock_requests_per_minute=parse_positive_float(
                os.getenv("STOCK_REQUESTS_PER_MINUTE"), 5.0, field_name="stock_requests_per_minute"
            ),
            stock_burst=parse_positive_int(os.getenv("STOCK_BURST"), 5, field_name="stock_burst"),
            stock_queue_timeout_seconds=parse_positive_float(
                os.getenv("STOCK_QUEUE_TIMEOUT_SECONDS"),
                120.0,
                field_name="stock_queue_timeout_seconds",
            ),
            http_timeout_seconds=parse_positive_float(
                os.getenv("HTTP_TIMEOUT_SECONDS"), 15.0, field_name="http_timeout_seconds"
            ),
            max_retries=parse_positive_int(os.getenv("MAX_RETRIES"), 3, field_name="max_retries"),
            crypto_max_workers=parse_positive_int(
                os.getenv("CRYPTO_MAX_WORKERS"), 8, field_name="crypto_max_workers"
            ),
            cache_prefix=str(os.getenv("CACHE_PREFIX", DEFAULT_CACHE_PREFIX)).strip(),
            cache_ttl=cache_ttl,
            state_db_path=str(os.getenv("STATE_DB_PATH", "state/sparkfinance.db")).strip(),
            log_level=str(os.getenv("LOG_LEVEL", "INFO")).strip().upper(),
            log_file=str(os.getenv("LOG_FILE", "")).strip() or None,
        )
        return raw.validate()

    def with_overrides(self, **kwargs: object) -> Self:
        """Return a new settings object with updated values."""
        updated = replace(self, **kwargs)
        return updated.validate()

    def validate(self) -> Self:
        """Validate settings fields."""
        if self.requests_per_minute <= 0 or self.requests_per_day <= 0:
            raise ConfigError("per-key request limits must be positive")
        if self.requests_per_minute > self.requests_per_day:
            raise ConfigError("requests_per_minute cannot exceed requests_per_day")
        if self.stock_requests_per_minute <= 0:
            raise ConfigError("stock_requests_per_minute must be positive")
        if self.stock_burst <= 0:
            raise ConfigError("stock_burst must be positive")
        if self.stock_queue_timeout_seconds <= 0:
            raise ConfigError("stock_queue_timeout_seconds must be positive")
        if self.http_timeout_seconds <= 0:
            raise ConfigError("http_timeout_seconds must be positive")
        if self.max_retries <= 0:
            raise ConfigError("max_retries must be positive")
        if self.crypto_max_workers <= 0:
            raise ConfigError("crypto_max_workers must be positive")
        if not self.cache_prefix:
            raise ConfigError("cache_prefix cannot be empty")
        if self.log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ConfigError("log_level must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return self

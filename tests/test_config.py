from __future__ import annotations

import pytest

from sparkfinance.config import CacheTtl, Settings, parse_keys
from sparkfinance.errors import ConfigError

ENV_KEYS = [
    "ALPHA_VANTAGE_API_KEYS",
    "FREECRYPTO_API_KEY",
    "REQUESTS_PER_MINUTE",
    "REQUESTS_PER_DAY",
    "STOCK_BURST",
    "STOCK_QUEUE_TIMEOUT_SECONDS",
    "CACHE_TTL_QUOTE_SECONDS",
    "CACHE_PREFIX",
    "STATE_DB_PATH",
    "LOG_LEVEL",
    "LOG_FILE",
]


def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sparkfinance.config.load_dotenv", lambda *args, **kwargs: None)
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_parse_keys_drops_blanks_and_duplicates() -> None:
    assert parse_keys(" k1, ,k2,k1 ") == ("k1", "k2")
    assert parse_keys(None) == ()


def test_defaults_without_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)

    settings = Settings.from_env()

    assert settings.alpha_vantage_api_keys == ()
    assert settings.requests_per_minute == 5
    assert settings.requests_per_day == 25
    assert settings.cache_prefix == "spark_finance_"
    assert settings.cache_ttl == CacheTtl()
    assert settings.log_file is None
    assert settings.stock_queue_timeout_seconds == 120.0


def test_environment_values_are_applied(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("ALPHA_VANTAGE_API_KEYS", "a,b,c")
    monkeypatch.setenv("REQUESTS_PER_DAY", "500")
    monkeypatch.setenv("CACHE_TTL_QUOTE_SECONDS", "60")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("STOCK_QUEUE_TIMEOUT_SECONDS", "7.5")

    settings = Settings.from_env()

    assert settings.alpha_vantage_api_keys == ("a", "b", "c")
    assert settings.requests_per_day == 500
    assert settings.cache_ttl.quote == 60
    assert settings.cache_ttl.ms("quote") == 60_000
    assert settings.cache_ttl.ms("company") == 86_400_000
    assert settings.log_level == "DEBUG"
    assert settings.stock_queue_timeout_seconds == 7.5


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("REQUESTS_PER_MINUTE", "0"),
        ("STOCK_BURST", "many"),
        ("STOCK_QUEUE_TIMEOUT_SECONDS", "0"),
        ("LOG_LEVEL", "LOUD"),
    ],
)
def test_invalid_environment_raises_config_error(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigError):
        Settings.from_env()


def test_with_overrides_validates() -> None:
    settings = Settings().with_overrides(state_db_path="state/other.db")

    assert settings.state_db_path == "state/other.db"
    with pytest.raises(ConfigError):
        Settings().with_overrides(requests_per_minute=30, requests_per_day=10)

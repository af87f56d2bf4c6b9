from __future__ import annotations

import random
from typing import Any

from fakes import FakeClock, FakeResponse, FakeSession

from sparkfinance.cache.ttl_cache import TtlCache
from sparkfinance.domain.models import AssetType, WatchlistItem
from sparkfinance.errors import ErrorKind
from sparkfinance.providers.crypto import CryptoProvider, synthesize_sparkline
from sparkfinance.state.memory_store import InMemoryKeyValueStore

BASE_URL = "https://crypto.test/v1"


def _quote(symbol: str, last: str, high: str, low: str, change: str) -> dict[str, Any]:
    return {
        "status": "success",
        "symbols": [
            {
                "symbol": symbol,
                "last": last,
                "highest": high,
                "lowest": low,
                "daily_change_percentage": change,
            }
        ],
    }


def _provider(handler: Any, clock: FakeClock | None = None) -> tuple[CryptoProvider, FakeSession]:
    clock = clock or FakeClock()
    session = FakeSession(handler=handler)
    provider = CryptoProvider(
        TtlCache(InMemoryKeyValueStore(), "t_", clock=clock),
        api_key="secret",
        base_url=BASE_URL,
        session=session,
        max_retries=1,
        rng=random.Random(7),
        clock=clock,
        sleep=lambda _: None,
    )
    return provider, session


def test_synthetic_sparkline_stays_in_range_and_ends_on_price() -> None:
    sparkline = synthesize_sparkline(110.0, 90.0, 101.0, random.Random(1))

    assert len(sparkline) == 24
    assert sparkline[-1] == 101.0
    assert all(90.0 <= value <= 110.0 for value in sparkline)


def test_quote_is_normalized_and_flagged_approximate() -> None:
    provider, session = _provider(
        lambda _url, _params: FakeResponse(_quote("BTC", "65000", "66000", "64000", "2.5"))
    )

    asset = provider.fetch_quote(WatchlistItem("BTC", AssetType.CRYPTO))
    provider.fetch_quote(WatchlistItem("BTC", AssetType.CRYPTO))

    assert asset.price == 65000.0
    assert asset.change24h == 2.5
    assert asset.sparkline_approximate is True
    assert asset.sparkline[-1] == 65000.0
    assert session.calls == [(f"{BASE_URL}/getData", {"symbol": "BTC", "token": "secret"})]


def test_unsuccessful_status_is_zeroed() -> None:
    provider, _ = _provider(lambda _url, _params: FakeResponse({"status": "error", "symbols": []}))

    asset = provider.fetch_quote(WatchlistItem("NOPE", AssetType.CRYPTO))

    assert asset.price == 0.0
    assert asset.error is ErrorKind.NO_DATA


def test_concurrent_quotes_keep_input_order_and_isolate_failures() -> None:
    prices = {"BTC": "65000", "ETH": "3500", "SOL": "150"}

    def handler(_url: str, params: dict[str, str]) -> FakeResponse:
        symbol = params["symbol"]
        if symbol == "ETH":
            return FakeResponse(status_code=502)
        return FakeResponse(_quote(symbol, prices[symbol], prices[symbol], prices[symbol], "0"))

    provider, _ = _provider(handler)
    items = [WatchlistItem(ticker, AssetType.CRYPTO) for ticker in ("SOL", "ETH", "BTC")]

    assets = provider.fetch_quotes(items)

    assert [asset.ticker for asset in assets] == ["SOL", "ETH", "BTC"]
    assert [asset.price for asset in assets] == [150.0, 0.0, 65000.0]
    assert assets[1].error is ErrorKind.NETWORK_ERROR
    assert provider.fetch_quotes([]) == []


def test_unexpected_failure_and_stale_cache_record_stay_per_ticker() -> None:
    def handler(_url: str, params: dict[str, str]) -> Any:
        if params["symbol"] == "ETH":
            return RuntimeError("socket closed mid-read")
        return FakeResponse(_quote("BTC", "65000", "66000", "64000", "1.5"))

    provider, session = _provider(handler)
    provider.cache.set(provider.cache.cache_key("crypto_quote", "BTC"), ["not", "a", "quote"], 60_000)
    items = [WatchlistItem("BTC", AssetType.CRYPTO), WatchlistItem("ETH", AssetType.CRYPTO)]

    assets = provider.fetch_quotes(items)

    assert [(asset.ticker, asset.price) for asset in assets] == [("BTC", 65000.0), ("ETH", 0.0)]
    assert assets[0].error is None
    assert assets[1].error is ErrorKind.API_ERROR
    assert len(session.calls) == 2


def test_chart_requests_last_month_and_sorts_points() -> None:
    # 2024-03-15 12:00 UTC
    clock = FakeClock(1_710_504_000_000)
    payload = {
        "status": "success",
        "result": [
            {"time_close": 1_710_374_400, "close": "70000"},
            {"time_close": 1_710_288_000, "close": "68000"},
            {"close": "1"},
        ],
    }
    provider, session = _provider(lambda _url, _params: FakeResponse(payload), clock=clock)

    points = provider.fetch_chart("BTC")

    assert [point.time for point in points] == [1_710_288_000_000, 1_710_374_400_000]
    assert [point.price for point in points] == [68000.0, 70000.0]
    url, params = session.calls[0]
    assert url == f"{BASE_URL}/getTimeframe"
    assert params["symbol"] == "BTC-USDT"
    assert (params["start_date"], params["end_date"]) == ("2024-02-15", "2024-03-15")


def test_chart_client_error_returns_empty_list() -> None:
    provider, _ = _provider(lambda _url, _params: FakeResponse(status_code=401, text="bad token"))

    assert provider.fetch_chart("BTC") == []

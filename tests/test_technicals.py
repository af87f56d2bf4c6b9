from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from fakes import FakeClock, FakeResponse, FakeSession

from sparkfinance.http.alpha_vantage import AlphaVantageClient
from sparkfinance.keys.rotation import ApiKeyManager
from sparkfinance.providers.technicals import (
    TechnicalIndicatorProvider,
    classify_band_position,
    classify_macd,
    classify_rsi,
)
from sparkfinance.state.memory_store import InMemoryKeyValueStore


def _provider(payload: Any) -> tuple[TechnicalIndicatorProvider, FakeSession]:
    session = FakeSession(handler=lambda _url, _params: FakeResponse(payload))
    manager = ApiKeyManager(["k1"], InMemoryKeyValueStore(), prefix="t_", clock=FakeClock())
    client = AlphaVantageClient(manager, session=session, sleep=lambda _: None)
    return TechnicalIndicatorProvider(client), session


def _series(count: int, make_row: Any) -> dict[str, dict[str, str]]:
    start = date(2024, 1, 1)
    # Newest first, like the provider.
    return {
        (start + timedelta(days=index)).isoformat(): make_row(index)
        for index in reversed(range(count))
    }


def test_macd_crossover_examples() -> None:
    assert classify_macd([-0.2, 0.3]) == "bullish"
    assert classify_macd([0.2, -0.1]) == "bearish"
    assert classify_macd([0.1, 0.2]) == "neutral"
    assert classify_macd([0.0, 0.1]) == "bullish"
    assert classify_macd([0.5]) == "bullish"
    assert classify_macd([-0.5]) == "bearish"
    assert classify_macd([0.0]) == "neutral"
    assert classify_macd([]) == "neutral"


def test_rsi_and_band_classification() -> None:
    assert classify_rsi(70.5) == "overbought"
    assert classify_rsi(70.0) == "neutral"
    assert classify_rsi(29.9) == "oversold"
    assert classify_band_position(None, 110.0, 90.0) == "within"
    assert classify_band_position(111.0, 110.0, 90.0) == "above_upper"
    assert classify_band_position(89.0, 110.0, 90.0) == "below_lower"
    assert classify_band_position(100.0, 110.0, 90.0) == "within"


def test_rsi_is_windowed_to_newest_thirty_points_in_order() -> None:
    payload = {"Technical Analysis: RSI": _series(40, lambda index: {"RSI": str(40 + index)})}
    provider, session = _provider(payload)

    rsi = provider.fetch_rsi("IBM")

    assert rsi is not None
    assert len(rsi.values) == 30
    assert rsi.values[0].date == "2024-01-11"
    assert rsi.values[-1].date == "2024-02-09"
    assert rsi.current_value == 79.0
    assert rsi.position == "overbought"
    params = session.calls[0][1]
    assert (params["function"], params["time_period"], params["interval"]) == ("RSI", "14", "daily")


def test_macd_trend_comes_from_histogram() -> None:
    hist = {0: "-0.4", 1: "-0.2", 2: "0.3"}
    payload = {
        "Technical Analysis: MACD": _series(
            3,
            lambda index: {"MACD": "1.0", "MACD_Signal": "0.9", "MACD_Hist": hist[index]},
        )
    }
    provider, _ = _provider(payload)

    macd = provider.fetch_macd("IBM")

    assert macd is not None
    assert [point.value for point in macd.histogram] == [-0.4, -0.2, 0.3]
    assert len(macd.macd) == len(macd.signal) == 3
    assert macd.trend == "bullish"


def test_bollinger_position_uses_supplied_price() -> None:
    payload = {
        "Technical Analysis: BBANDS": _series(
            5,
            lambda _index: {
                "Real Upper Band": "110.0",
                "Real Middle Band": "100.0",
                "Real Lower Band": "90.0",
            },
        )
    }
    provider, session = _provider(payload)

    above = provider.fetch_bollinger_bands("IBM", current_price=120.0)
    unknown = provider.fetch_bollinger_bands("IBM")

    assert above is not None and above.position == "above_upper"
    assert unknown is not None and unknown.position == "within"
    assert len(above.middle) == 5
    assert session.calls[0][1]["nbdevup"] == "2"


def test_missing_series_is_none() -> None:
    provider, _ = _provider({"Meta Data": {}})

    assert provider.fetch_rsi("IBM") is None
    assert provider.fetch_macd("IBM") is None
    assert provider.fetch_bollinger_bands("IBM") is None

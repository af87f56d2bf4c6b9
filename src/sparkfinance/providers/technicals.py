"""Provider-computed RSI, MACD and Bollinger Bands.

Nothing is recomputed locally: the adapter windows the provider series to
the newest points, returns them oldest first and derives a signal label.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import pandas as pd

from sparkfinance.domain.models import (
    BandPosition,
    BollingerBandsData,
    IndicatorPoint,
    MACDData,
    MACDTrend,
    RSIData,
    RSIPosition,
)
from sparkfinance.errors import FinanceError
from sparkfinance.http.alpha_vantage import AlphaVantageClient
from sparkfinance.providers.base import time_series_frame

WINDOW = 30
RSI_OVERBOUGHT = 70.0
RSI_OVERSOLD = 30.0


def classify_rsi(value: float) -> RSIPosition:
    if value > RSI_OVERBOUGHT:
        return "overbought"
    if value < RSI_OVERSOLD:
        return "oversold"
    return "neutral"


def classify_macd(histogram: Sequence[float]) -> MACDTrend:
    """Detect a zero crossing between the last two histogram values.

    A lone value is compared against zero.
    """
    if not histogram:
        return "neutral"
    latest = histogram[-1]
    previous = histogram[-2] if len(histogram) > 1 else 0.0
    if latest > 0 and previous <= 0:
        return "bullish"
    if latest < 0 and previous >= 0:
        return "bearish"
    return "neutral"


def classify_band_position(price: float | None, upper: float, lower: float) -> BandPosition:
    """Place a price against the latest bands; no price means ``within``."""
    if price is None:
        return "within"
    if price > upper:
        return "above_upper"
    if price < lower:
        return "below_lower"
    return "within"


def _series(frame: pd.DataFrame, column: str) -> list[IndicatorPoint]:
    if column not in frame.columns:
        return []
    rows = frame[["date", column]].dropna()
    return [IndicatorPoint(date=str(date), value=float(value)) for date, value in rows.itertuples(index=False)]


class TechnicalIndicatorProvider:
    def __init__(self, client: AlphaVantageClient) -> None:
        self.client = client
        self.logger = logging.getLogger("sparkfinance.providers.technicals")

    def fetch_rsi(self, symbol: str, time_period: int = 14) -> RSIData | None:
        frame = self._fetch_frame(
            "RSI",
            symbol,
            {"time_period": str(time_period), "series_type": "close"},
        )
        values = _series(frame, "RSI")
        if not values:
            return None
        current = values[-1].value
        return RSIData(values=values, current_value=current, position=classify_rsi(current))

    def fetch_macd(self, symbol: str) -> MACDData | None:
        frame = self._fetch_frame("MACD", symbol, {"series_type": "close"})
        histogram = _series(frame, "MACD_Hist")
        if not histogram:
            return None
        return MACDData(
            macd=_series(frame, "MACD"),
            signal=_series(frame, "MACD_Signal"),
            histogram=histogram,
            trend=classify_macd([point.value for point in histogram]),
        )

    def fetch_bollinger_bands(
        self,
        symbol: str,
        time_period: int = 20,
        nb_dev: int = 2,
        current_price: float | None = None,
    ) -> BollingerBandsData | None:
        frame = self._fetch_frame(
            "BBANDS",
            symbol,
            {
                "time_period": str(time_period),
                "series_type": "close",
                "nbdevup": str(nb_dev),
                "nbdevdn": str(nb_dev),
            },
        )
        upper = _series(frame, "Real Upper Band")
        lower = _series(frame, "Real Lower Band")
        if not upper or not lower:
            return None
        return BollingerBandsData(
            upper=upper,
            middle=_series(frame, "Real Middle Band"),
            lower=lower,
            position=classify_band_position(current_price, upper[-1].value, lower[-1].value),
        )

    def _fetch_frame(self, function: str, symbol: str, extra: dict[str, str]) -> pd.DataFrame:
        params = {"function": function, "symbol": symbol, "interval": "daily", **extra}
        try:
            payload = self.client.query(params)
        except FinanceError as exc:
            self.logger.warning("Failed to fetch %s for %s: %s", function, symbol, exc)
            return pd.DataFrame()
        series = payload.get(f"Technical Analysis: {function}")
        if not isinstance(series, dict):
            return pd.DataFrame()
        return time_series_frame(series, limit=WINDOW)

"""Market data adapters."""

from .base import as_float, as_int, decode_list, time_series_frame
from .crypto import CryptoProvider, synthesize_sparkline
from .news import NewsProvider
from .stock import StockProvider
from .technicals import (
    TechnicalIndicatorProvider,
    classify_band_position,
    classify_macd,
    classify_rsi,
)

__all__ = [
    "CryptoProvider",
    "NewsProvider",
    "StockProvider",
    "TechnicalIndicatorProvider",
    "as_float",
    "as_int",
    "decode_list",
    "classify_band_position",
    "classify_macd",
    "classify_rsi",
    "synthesize_sparkline",
    "time_series_frame",
]

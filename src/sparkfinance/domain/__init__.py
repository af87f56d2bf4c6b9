"""Domain models."""

from .models import (
    AssetType,
    BollingerBandsData,
    ChartDataPoint,
    CompanyOverview,
    FinancialAsset,
    IndicatorPoint,
    MACDData,
    NewsItem,
    RemainingRequests,
    RSIData,
    SearchResult,
    TickerMatch,
    TopMover,
    TopMoversData,
    WatchlistItem,
)

__all__ = [
    "AssetType",
    "BollingerBandsData",
    "ChartDataPoint",
    "CompanyOverview",
    "FinancialAsset",
    "IndicatorPoint",
    "MACDData",
    "NewsItem",
    "RemainingRequests",
    "RSIData",
    "SearchResult",
    "TickerMatch",
    "TopMover",
    "TopMoversData",
    "WatchlistItem",
]

"""Core market-data domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Literal, Self

from sparkfinance.errors import ErrorKind

RSIPosition = Literal["overbought", "oversold", "neutral"]
MACDTrend = Literal["bullish", "bearish", "neutral"]
BandPosition = Literal["above_upper", "below_lower", "within"]


class AssetType(StrEnum):
    """Supported watchlist asset classes."""

    STOCK = "stock"
    CRYPTO = "crypto"


@dataclass(frozen=True)
class WatchlistItem:
    """User-chosen ticker; ticker plus type is the join key."""

    ticker: str
    type: AssetType

    @property
    def identity(self) -> tuple[str, AssetType]:
        return (self.ticker.strip().upper(), AssetType(self.type))


@dataclass(frozen=True)
class FinancialAsset:
    """Watchlist item enriched with a current quote."""

    ticker: str
    type: AssetType
    price: float
    change24h: float
    sparkline: list[float] = field(default_factory=list)
    sparkline_approximate: bool = False
    error: ErrorKind | None = None

    @property
    def identity(self) -> tuple[str, AssetType]:
        return (self.ticker.strip().upper(), AssetType(self.type))

    @property
    def is_degraded(self) -> bool:
        return self.error is not None

    @classmethod
    def zeroed(cls, item: WatchlistItem, error: ErrorKind | None = ErrorKind.NO_DATA) -> Self:
        """Degraded stand-in used when a ticker cannot be fetched."""
        return cls(ticker=item.ticker, type=AssetType(item.type), price=0.0, change24h=0.0, error=error)

    def to_record(self) -> dict[str, Any]:
        return {
            "ticker": self.ticker,
            "type": str(self.type),
            "price": self.price,
            "change24h": self.change24h,
            "sparkline": list(self.sparkline),
            "sparklineApproximate": self.sparkline_approximate,
            "error": str(self.error) if self.error else None,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Self:
        error = record.get("error")
        return cls(
            ticker=str(record["ticker"]),
            type=AssetType(record["type"]),
            price=float(record["price"]),
            change24h=float(record["change24h"]),
            sparkline=[float(value) for value in record.get("sparkline", [])],
            sparkline_approximate=bool(record.get("sparklineApproximate", False)),
            error=ErrorKind(error) if error else None,
        )


@dataclass(frozen=True)
class ChartDataPoint:
    """Single close price at an epoch-millisecond timestamp."""

    time: int
    price: float

    def to_record(self) -> dict[str, Any]:
        return {"time": self.time, "price": self.price}

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Self:
        return cls(time=int(record["time"]), price=float(record["price"]))


@dataclass(frozen=True)
class IndicatorPoint:
    """One dated value of a technical indicator series."""

    date: str
    value: float

    def to_record(self) -> dict[str, Any]:
        return {"date": self.date, "value": self.value}


@dataclass(frozen=True)
class RSIData:
    values: list[IndicatorPoint]
    current_value: float
    position: RSIPosition

    def to_record(self) -> dict[str, Any]:
        return {
            "values": [point.to_record() for point in self.values],
            "currentValue": self.current_value,
            "position": self.position,
        }


@dataclass(frozen=True)
class MACDData:
    macd: list[IndicatorPoint]
    signal: list[IndicatorPoint]
    histogram: list[IndicatorPoint]
    trend: MACDTrend

    def to_record(self) -> dict[str, Any]:
        return {
            "macd": [point.to_record() for point in self.macd],
            "signal": [point.to_record() for point in self.signal],
            "histogram": [point.to_record() for point in self.histogram],
            "trend": self.trend,
        }


@dataclass(frozen=True)
class BollingerBandsData:
    upper: list[IndicatorPoint]
    middle: list[IndicatorPoint]
    lower: list[IndicatorPoint]
    position: BandPosition

    def to_record(self) -> dict[str, Any]:
        return {
            "upper": [point.to_record() for point in self.upper],
            "middle": [point.to_record() for point in self.middle],
            "lower": [point.to_record() for point in self.lower],
            "position": self.position,
        }


@dataclass(frozen=True)
class NewsItem:
    id: int
    headline: str
    summary: str
    url: str
    source: str
    datetime: float

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "headline": self.headline,
            "summary": self.summary,
            "url": self.url,
            "source": self.source,
            "datetime": self.datetime,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Self:
        return cls(
            id=int(record["id"]),
            headline=str(record["headline"]),
            summary=str(record["summary"]),
            url=str(record["url"]),
            source=str(record["source"]),
            datetime=float(record["datetime"]),
        )


@dataclass(frozen=True)
class CompanyOverview:
    symbol: str
    name: str
    description: str
    sector: str
    industry: str
    market_cap: float
    pe_ratio: float
    dividend_yield: float
    eps: float
    high_52_week: float
    low_52_week: float

    def to_record(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "description": self.description,
            "sector": self.sector,
            "industry": self.industry,
            "marketCap": self.market_cap,
            "peRatio": self.pe_ratio,
            "dividendYield": self.dividend_yield,
            "eps": self.eps,
            "high52Week": self.high_52_week,
            "low52Week": self.low_52_week,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Self:
        return cls(
            symbol=str(record["symbol"]),
            name=str(record["name"]),
            description=str(record["description"]),
            sector=str(record["sector"]),
            industry=str(record["industry"]),
            market_cap=float(record["marketCap"]),
            pe_ratio=float(record["peRatio"]),
            dividend_yield=float(record["dividendYield"]),
            eps=float(record["eps"]),
            high_52_week=float(record["high52Week"]),
            low_52_week=float(record["low52Week"]),
        )


@dataclass(frozen=True)
class TopMover:
    ticker: str
    price: float
    change_amount: float
    change_percent: float
    volume: int

    def to_record(self) -> dict[str, Any]:
        return {
            "ticker": self.ticker,
            "price": self.price,
            "changeAmount": self.change_amount,
            "changePercent": self.change_percent,
            "volume": self.volume,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Self:
        return cls(
            ticker=str(record["ticker"]),
            price=float(record["price"]),
            change_amount=float(record["changeAmount"]),
            change_percent=float(record["changePercent"]),
            volume=int(record["volume"]),
        )


@dataclass(frozen=True)
class TopMoversData:
    gainers: list[TopMover]
    losers: list[TopMover]
    most_active: list[TopMover]

    def to_record(self) -> dict[str, Any]:
        return {
            "gainers": [mover.to_record() for mover in self.gainers],
            "losers": [mover.to_record() for mover in self.losers],
            "mostActive": [mover.to_record() for mover in self.most_active],
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Self:
        return cls(
            gainers=[TopMover.from_record(item) for item in record.get("gainers", [])],
            losers=[TopMover.from_record(item) for item in record.get("losers", [])],
            most_active=[TopMover.from_record(item) for item in record.get("mostActive", [])],
        )


@dataclass(frozen=True)
class SearchResult:
    symbol: str
    name: str
    type: str
    region: str
    match_score: float

    def to_record(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "type": self.type,
            "region": self.region,
            "matchScore": self.match_score,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Self:
        return cls(
            symbol=str(record["symbol"]),
            name=str(record["name"]),
            type=str(record["type"]),
            region=str(record["region"]),
            match_score=float(record["matchScore"]),
        )


@dataclass(frozen=True)
class RemainingRequests:
    """Quota left on the active key and across the whole pool."""

    minute: int
    day: int
    total_day_across_keys: int
    active_key_index: int

    def to_record(self) -> dict[str, Any]:
        return {
            "minute": self.minute,
            "day": self.day,
            "totalDayAcrossKeys": self.total_day_across_keys,
            "activeKeyIndex": self.active_key_index,
        }


@dataclass(frozen=True)
class TickerMatch:
    """Resolved ticker lookup result."""

    id: str
    name: str
    type: AssetType

    def to_record(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "type": str(self.type)}

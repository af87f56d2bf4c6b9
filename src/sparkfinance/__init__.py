"""Stock and crypto market data aggregation with API key rotation."""

from .config import Settings
from .runtime import build_service
from .service import MarketDataService

__all__ = ["MarketDataService", "Settings", "build_service"]

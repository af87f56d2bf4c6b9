"""HTTP fetch pipeline."""

from .alpha_vantage import AlphaVantageClient
from .classifier import ProviderFailure, ProviderOk, QuotaExceeded, classify_payload
from .fetch import backoff_seconds, fetch_json, fetch_with_retry
from .throttle import TokenBucket

__all__ = [
    "AlphaVantageClient",
    "ProviderFailure",
    "ProviderOk",
    "QuotaExceeded",
    "TokenBucket",
    "backoff_seconds",
    "classify_payload",
    "fetch_json",
    "fetch_with_retry",
]

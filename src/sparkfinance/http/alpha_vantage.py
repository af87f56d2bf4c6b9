"""Alpha Vantage HTTP client with API key rotation."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Mapping
from typing import Any

import requests

from sparkfinance.config import DEFAULT_ALPHA_VANTAGE_BASE_URL
from sparkfinance.errors import ApiError, RateLimitError
from sparkfinance.http.classifier import (
    ProviderFailure,
    ProviderResult,
    QuotaExceeded,
    classify_payload,
)
from sparkfinance.http.fetch import fetch_json
from sparkfinance.http.throttle import TokenBucket
from sparkfinance.keys.rotation import ApiKeyManager, ApiKeySlot


class AlphaVantageClient:
    """Query the stock provider with a rotated key and one quota failover."""

    def __init__(
        self,
        keys: ApiKeyManager,
        *,
        base_url: str = DEFAULT_ALPHA_VANTAGE_BASE_URL,
        session: requests.Session | None = None,
        throttle: TokenBucket | None = None,
        queue_timeout: float | None = None,
        timeout: float = 15.0,
        max_retries: int = 3,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.keys = keys
        self.base_url = base_url
        self.session = session or requests.Session()
        self.throttle = throttle
        self.queue_timeout = queue_timeout
        self.timeout = timeout
        self.max_retries = max_retries
        self.sleep = sleep
        self.logger = logging.getLogger("sparkfinance.http.alpha_vantage")

    def query(
        self,
        params: Mapping[str, str],
        cancel_event: threading.Event | None = None,
    ) -> dict[str, Any]:
        """Return the decoded payload for a provider function call.

        Raises ``RateLimitError`` when no key is available or the provider
        still reports quota exhaustion after failing over to a second key.
        """
        slot = self._next_key()
        result = self._request(params, slot, cancel_event)

        if isinstance(result, QuotaExceeded):
            self.logger.warning("Alpha Vantage: %s", result.message)
            self.keys.mark_exhausted(slot.key)
            slot = self._next_key()
            result = self._request(params, slot, cancel_event)
            if isinstance(result, QuotaExceeded):
                self.keys.mark_exhausted(slot.key)
                raise RateLimitError(
                    f"Alpha Vantage quota still exceeded after failover: {result.message}"
                )

        self.keys.record_usage(slot.key)
        if isinstance(result, ProviderFailure):
            raise ApiError(f"Alpha Vantage returned an error: {result.message}")
        return result.payload

    def _next_key(self) -> ApiKeySlot:
        slot = self.keys.get_available_key()
        if slot is None:
            raise RateLimitError("All Alpha Vantage API keys are rate limited")
        return slot

    def _request(
        self,
        params: Mapping[str, str],
        slot: ApiKeySlot,
        cancel_event: threading.Event | None,
    ) -> ProviderResult:
        if self.throttle is not None:
            self.throttle.acquire(timeout=self.queue_timeout, cancel_event=cancel_event)
        query = {**params, "apikey": slot.key}
        payload = fetch_json(
            self.session,
            self.base_url,
            query,
            timeout=self.timeout,
            max_retries=self.max_retries,
            sleep=self.sleep,
        )
        return classify_payload(payload)

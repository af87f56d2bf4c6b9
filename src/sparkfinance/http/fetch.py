"""HTTP GET with bounded exponential backoff."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

import requests

from sparkfinance.errors import ApiError, NetworkError

logger = logging.getLogger("sparkfinance.http")

BASE_DELAY_MS = 1000
MAX_DELAY_MS = 10000


def backoff_seconds(attempt: int) -> float:
    """Delay before the retry that follows zero-based `attempt`."""
    return min(BASE_DELAY_MS * 2**attempt, MAX_DELAY_MS) / 1000.0


def fetch_with_retry(
    session: requests.Session,
    url: str,
    params: Mapping[str, str] | None = None,
    *,
    timeout: float = 15.0,
    max_retries: int = 3,
    sleep: Callable[[float], None] = time.sleep,
) -> requests.Response:
    """Perform a GET, retrying transport failures and 5xx responses.

    4xx responses are permanent and raise ``ApiError`` immediately.
    Exhausting the retry budget raises ``NetworkError``.
    """
    last_failure = "no attempt made"
    for attempt in range(max_retries):
        try:
            response = session.get(url, params=params, timeout=timeout)
        except requests.RequestException as exc:
            last_failure = str(exc)
        else:
            if response.ok:
                return response
            if 400 <= response.status_code < 500:
                detail = response.text.strip()[:200] or "No response body"
                raise ApiError(
                    f"Provider rejected request ({response.status_code}): {detail}",
                    status_code=response.status_code,
                )
            last_failure = f"HTTP {response.status_code}"

        if attempt < max_retries - 1:
            delay = backoff_seconds(attempt)
            logger.warning(
                "Request to %s failed (attempt %s/%s): %s. Retrying in %ss.",
                url,
                attempt + 1,
                max_retries,
                last_failure,
                delay,
            )
            sleep(delay)

    raise NetworkError(f"Request to {url} failed after {max_retries} attempts: {last_failure}")


def fetch_json(
    session: requests.Session,
    url: str,
    params: Mapping[str, str] | None = None,
    **kwargs: Any,
) -> Any:
    """Fetch a URL with retries and decode its JSON body."""
    response = fetch_with_retry(session, url, params, **kwargs)
    try:
        return response.json()
    except ValueError as exc:
        raise ApiError(f"Provider returned malformed JSON from {url}") from exc

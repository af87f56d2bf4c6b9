"""TTL cache over the durable key-value store.

Each entry is stored as JSON ``{"data": ..., "timestamp": ms, "expiresAt": ms}``
with ``expiresAt = timestamp + ttl``. Reads evict expired entries lazily and
``clear_expired`` sweeps the whole prefix. Caching is best-effort: storage
or decoding failures behave like a miss (reads) or a no-op (writes).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from sparkfinance.errors import StorageError
from sparkfinance.state.store import KeyValueStore
from sparkfinance.utils.time import Clock, now_ms

CACHE_FAILURES = (StorageError, ValueError, TypeError, KeyError)
DECODE_FAILURES = (ValueError, TypeError, KeyError, AttributeError)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry:
    """Stored payload with its write time and expiry."""

    data: Any
    timestamp: int
    expires_at: int

    def is_expired(self, now: int) -> bool:
        return now > self.expires_at

    def to_json(self) -> str:
        return json.dumps(
            {"data": self.data, "timestamp": self.timestamp, "expiresAt": self.expires_at}
        )

    @classmethod
    def from_json(cls, text: str) -> CacheEntry:
        raw = json.loads(text)
        return cls(
            data=raw["data"],
            timestamp=int(raw["timestamp"]),
            expires_at=int(raw["expiresAt"]),
        )


class TtlCache:
    """Namespaced get/set with per-entry expiry."""

    def __init__(self, store: KeyValueStore, prefix: str, clock: Clock = now_ms) -> None:
        self.store = store
        self.prefix = prefix
        self.clock = clock
        self.logger = logging.getLogger("sparkfinance.cache")

    def cache_key(self, data_type: str, identifier: str) -> str:
        return f"{self.prefix}{data_type}_{identifier}"

    def get(self, key: str) -> Any | None:
        """Return cached data, or None when missing, expired or unreadable."""
        try:
            cached = self.store.get_item(key)
            if not cached:
                return None
            entry = CacheEntry.from_json(cached)
            if entry.is_expired(self.clock()):
                self.store.remove_item(key)
                return None
            return entry.data
        except CACHE_FAILURES as exc:
            self.logger.debug("Cache read failed for %s: %s", key, exc)
            return None

    def get_decoded(self, key: str, decode: Callable[[Any], T]) -> T | None:
        """Return cached data passed through `decode`.

        A record that no longer decodes (older schema, hand-edited store) is
        removed and treated as a miss.
        """
        cached = self.get(key)
        if cached is None:
            return None
        try:
            return decode(cached)
        except DECODE_FAILURES as exc:
            self.logger.warning("Dropping malformed cache entry %s: %s", key, exc)
            try:
                self.store.remove_item(key)
            except StorageError as remove_exc:
                self.logger.debug("Could not remove %s: %s", key, remove_exc)
            return None

    def set(self, key: str, data: Any, ttl_ms: int) -> None:
        now = self.clock()
        entry = CacheEntry(data=data, timestamp=now, expires_at=now + ttl_ms)
        try:
            self.store.set_item(key, entry.to_json())
        except CACHE_FAILURES as exc:
            self.logger.warning("Cache write failed for %s: %s", key, exc)

    def clear_expired(self) -> int:
        """Remove every expired entry under the prefix and return how many were removed."""
        now = self.clock()
        removed = 0
        try:
            keys = self.store.keys(self.prefix)
        except StorageError as exc:
            self.logger.warning("Cache sweep failed: %s", exc)
            return 0
        for key in keys:
            try:
                cached = self.store.get_item(key)
                if not cached:
                    continue
                raw = json.loads(cached)
                # Non-cache records (for example key rotation state) carry no expiry.
                if not isinstance(raw, dict) or "expiresAt" not in raw:
                    continue
                if now > int(raw["expiresAt"]):
                    self.store.remove_item(key)
                    removed += 1
            except CACHE_FAILURES as exc:
                self.logger.debug("Skipping unreadable cache entry %s: %s", key, exc)
        if removed:
            self.logger.info("Cleared %s expired cache entries", removed)
        return removed

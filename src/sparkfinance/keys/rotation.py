"""API key rotation with sliding minute/day usage windows."""

from __future__ import annotations

import copy
import json
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Self

from sparkfinance.domain.models import RemainingRequests
from sparkfinance.errors import StorageError
from sparkfinance.state.store import KeyValueStore
from sparkfinance.utils.time import DAY_MS, MINUTE_MS, Clock, now_ms

STATE_KEY_SUFFIX = "api_key_state"


@dataclass
class KeyUsage:
    """Request timestamps (epoch ms) for one key, oldest first."""

    minute_requests: list[int] = field(default_factory=list)
    day_requests: list[int] = field(default_factory=list)

    def prune(self, now: int) -> None:
        minute_floor = now - MINUTE_MS
        day_floor = now - DAY_MS
        self.minute_requests = [ts for ts in self.minute_requests if ts > minute_floor]
        self.day_requests = [ts for ts in self.day_requests if ts > day_floor]


@dataclass
class ApiKeyState:
    """Persisted rotation cursor plus per-key usage."""

    key_index: int = 0
    key_usage: dict[str, KeyUsage] = field(default_factory=dict)
    extra_keys: list[str] = field(default_factory=list)

    def usage_for(self, key: str) -> KeyUsage:
        if key not in self.key_usage:
            self.key_usage[key] = KeyUsage()
        return self.key_usage[key]

    def prune(self, now: int) -> None:
        for usage in self.key_usage.values():
            usage.prune(now)

    def to_json(self) -> str:
        return json.dumps(
            {
                "keyIndex": self.key_index,
                "keyUsage": {
                    key: {
                        "minuteRequests": usage.minute_requests,
                        "dayRequests": usage.day_requests,
                    }
                    for key, usage in self.key_usage.items()
                },
                "extraKeys": self.extra_keys,
            }
        )

    @classmethod
    def from_json(cls, text: str) -> Self:
        raw: dict[str, Any] = json.loads(text)
        usage: dict[str, KeyUsage] = {}
        for key, entry in dict(raw.get("keyUsage", {})).items():
            usage[str(key)] = KeyUsage(
                minute_requests=[int(ts) for ts in entry.get("minuteRequests", [])],
                day_requests=[int(ts) for ts in entry.get("dayRequests", [])],
            )
        return cls(
            key_index=int(raw.get("keyIndex", 0)),
            key_usage=usage,
            extra_keys=[str(key) for key in raw.get("extraKeys", [])],
        )


@dataclass(frozen=True)
class ApiKeySlot:
    """Key handed out by the manager together with its rotation position."""

    key: str
    index: int


class ApiKeyManager:
    """Tracks per-key usage and picks the next key with quota left.

    The manager is the single owner of the rotation state: it loads the
    persisted snapshot once, then every read-modify-write runs under one
    lock and is written through to the store. It performs no network I/O.
    """

    def __init__(
        self,
        keys: list[str] | tuple[str, ...],
        store: KeyValueStore,
        *,
        prefix: str,
        requests_per_minute: int = 5,
        requests_per_day: int = 25,
        clock: Clock = now_ms,
    ) -> None:
        self._keys: list[str] = []
        for key in keys:
            if key and key not in self._keys:
                self._keys.append(key)
        self.store = store
        self.state_key = f"{prefix}{STATE_KEY_SUFFIX}"
        self.requests_per_minute = requests_per_minute
        self.requests_per_day = requests_per_day
        self.clock = clock
        self.logger = logging.getLogger("sparkfinance.keys")
        self._lock = threading.Lock()
        self._state = self._load_state()

    @property
    def keys(self) -> list[str]:
        return list(self._keys)

    def key_count(self) -> int:
        return len(self._keys)

    def state(self) -> ApiKeyState:
        """Return a pruned copy of the current rotation state."""
        with self._lock:
            self._state.prune(self.clock())
            return copy.deepcopy(self._state)

    def get_available_key(self) -> ApiKeySlot | None:
        """Return the first key, in rotation order, under both limits."""
        with self._lock:
            self._state.prune(self.clock())
            total = len(self._keys)
            for offset in range(total):
                index = (self._state.key_index + offset) % total
                key = self._keys[index]
                usage = self._state.usage_for(key)
                within_minute = len(usage.minute_requests) < self.requests_per_minute
                within_day = len(usage.day_requests) < self.requests_per_day
                if within_minute and within_day:
                    if index != self._state.key_index:
                        self._state.key_index = index
                        self._save_state()
                        self.logger.info("Switched to API key #%s", index + 1)
                    return ApiKeySlot(key=key, index=index)
            return None

    def record_usage(self, key: str) -> None:
        with self._lock:
            now = self.clock()
            self._state.prune(now)
            usage = self._state.usage_for(key)
            usage.minute_requests.append(now)
            usage.day_requests.append(now)
            self._save_state()

    def mark_exhausted(self, key: str) -> None:
        """Fill the key's day window to its limit and move the cursor on.

        Used when the provider reports quota exhaustion in the response body,
        since it exposes no structured remaining-quota field.
        """
        with self._lock:
            now = self.clock()
            self._state.prune(now)
            usage = self._state.usage_for(key)
            while len(usage.day_requests) < self.requests_per_day:
                usage.day_requests.append(now)
            if self._keys:
                self._state.key_index = (self._state.key_index + 1) % len(self._keys)
            self._save_state()
            self.logger.warning(
                "API key exhausted, switching to key #%s", self._state.key_index + 1
            )

    def remaining_requests(self) -> RemainingRequests:
        with self._lock:
            self._state.prune(self.clock())
            index = self._state.key_index
            if not self._keys or index >= len(self._keys):
                return RemainingRequests(
                    minute=0, day=0, total_day_across_keys=0, active_key_index=index
                )
            current = self._state.usage_for(self._keys[index])
            total_day = sum(
                max(0, self.requests_per_day - len(self._state.usage_for(key).day_requests))
                for key in self._keys
            )
            return RemainingRequests(
                minute=max(0, self.requests_per_minute - len(current.minute_requests)),
                day=max(0, self.requests_per_day - len(current.day_requests)),
                total_day_across_keys=total_day,
                active_key_index=index,
            )

    def add_key(self, new_key: str) -> bool:
        """Add a key to the rotation; empty or duplicate keys are rejected."""
        candidate = new_key.strip() if new_key else ""
        with self._lock:
            if not candidate or candidate in self._keys:
                return False
            self._keys.append(candidate)
            self._state.extra_keys.append(candidate)
            self._state.key_usage[candidate] = KeyUsage()
            self._save_state()
        self.logger.info("Added new API key. Total keys: %s", len(self._keys))
        return True

    def _load_state(self) -> ApiKeyState:
        state: ApiKeyState | None = None
        try:
            cached = self.store.get_item(self.state_key)
            if cached:
                state = ApiKeyState.from_json(cached)
        except (StorageError, ValueError, TypeError, AttributeError) as exc:
            self.logger.warning("Discarding unreadable API key state: %s", exc)
        if state is None:
            state = ApiKeyState()
        for key in state.extra_keys:
            if key and key not in self._keys:
                self._keys.append(key)
        if not self._keys or not 0 <= state.key_index < len(self._keys):
            state.key_index = 0
        for key in self._keys:
            state.usage_for(key)
        state.prune(self.clock())
        return state

    def _save_state(self) -> None:
        try:
            self.store.set_item(self.state_key, self._state.to_json())
        except StorageError as exc:
            self.logger.warning("Could not persist API key state: %s", exc)

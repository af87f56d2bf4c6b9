"""In-process key-value store for tests and ephemeral runs."""

from __future__ import annotations

import threading


class InMemoryKeyValueStore:
    """Dictionary-backed implementation of the key-value store contract."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get_item(self, key: str) -> str | None:
        with self._lock:
            return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._items[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        with self._lock:
            return [key for key in self._items if key.startswith(prefix)]

    def close(self) -> None:
        return None

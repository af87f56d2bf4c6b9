"""Durable key-value store contract shared by the cache and key rotation."""

from __future__ import annotations

from typing import Protocol


class KeyValueStore(Protocol):
    """String-to-string persistence used across sessions."""

    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""

    def set_item(self, key: str, value: str) -> None:
        """Insert or replace a value."""

    def remove_item(self, key: str) -> None:
        """Delete a key; missing keys are ignored."""

    def keys(self, prefix: str = "") -> list[str]:
        """Return every stored key starting with `prefix`."""

    def close(self) -> None:
        """Close persistence resources."""

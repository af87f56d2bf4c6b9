"""Key-value store interfaces and implementations."""

from .memory_store import InMemoryKeyValueStore
from .sqlite_store import SqliteKeyValueStore
from .store import KeyValueStore

__all__ = ["KeyValueStore", "InMemoryKeyValueStore", "SqliteKeyValueStore"]

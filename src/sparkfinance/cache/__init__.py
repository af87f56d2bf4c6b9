"""TTL cache over the durable key-value store."""

from .ttl_cache import CacheEntry, TtlCache

__all__ = ["CacheEntry", "TtlCache"]

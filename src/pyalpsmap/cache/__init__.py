"""Persistent peaks cache.

Backends provide the string substrate; the store owns expiry, capacity
eviction and corruption recovery.
"""

from pyalpsmap.cache.backends import JsonFileBackend, KeyValueBackend, MemoryBackend
from pyalpsmap.cache.store import CacheEntry, CacheStore

__all__ = [
    "CacheEntry",
    "CacheStore",
    "JsonFileBackend",
    "KeyValueBackend",
    "MemoryBackend",
]

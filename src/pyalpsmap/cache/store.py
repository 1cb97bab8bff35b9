"""Size- and time-bounded persistent cache for one dataset class.

This is a best-effort cache, never a system of record: every backend
failure is recovered here and never reaches callers.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from datetime import timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from pyalpsmap._constants import PEAKS_CACHE_PREFIX
from pyalpsmap.cache.backends import KeyValueBackend
from pyalpsmap.cache.policy import is_expired, select_overflow
from pyalpsmap.exceptions import CacheError, StorageFullError

_logger = logging.getLogger(__name__)


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


class CacheEntry(BaseModel):
    """Serialised form of one cached dataset.

    ``timestamp`` is the epoch-millis time of the last ``set``, not of
    the original fetch.
    """

    model_config = ConfigDict(extra="forbid")

    timestamp: int
    payload: list[Any]


class CacheStore:
    """Bounds-keyed cache with lazy expiry and oldest-first capacity eviction.

    Only keys starting with ``<prefix>_`` belong to this store; other keys
    in a shared backend are never read or evicted.

    Parameters
    ----------
    backend : KeyValueBackend
        String substrate (memory, JSON file, ...).
    prefix : str
        Key prefix owned by this store.
    max_entries : int
        Resident entry count that triggers capacity eviction when exceeded.
    retain_entries : int
        Entries kept after a capacity eviction.
    expiry : timedelta
        Age after which an entry is never returned.
    clock : callable
        Returns the current epoch time in milliseconds.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        *,
        prefix: str = PEAKS_CACHE_PREFIX,
        max_entries: int = 20,
        retain_entries: int = 15,
        expiry: timedelta = timedelta(days=7),
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        if not 0 <= retain_entries <= max_entries:
            raise ValueError("retain_entries must be between 0 and max_entries")
        self._backend = backend
        self._prefix = f"{prefix}_"
        self._max_entries = max_entries
        self._retain_entries = retain_entries
        self._expiry_ms = expiry // timedelta(milliseconds=1)
        self._clock = clock

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _index(self) -> list[str]:
        return sorted(key for key in self._backend.keys() if key.startswith(self._prefix))

    def _delete(self, key: str) -> None:
        try:
            self._backend.delete(key)
        except CacheError:
            _logger.warning("Failed to delete cache entry %s", key, exc_info=True)

    def _read(self, key: str) -> CacheEntry | None:
        """Load an entry; corrupt entries are deleted and reported as absent."""
        raw = self._backend.get(key)
        if raw is None:
            return None
        try:
            return CacheEntry.model_validate_json(raw)
        except ValidationError:
            _logger.warning("Dropping corrupt cache entry %s", key)
            self._delete(key)
            return None

    def _iter_entries(self) -> Iterator[tuple[str, CacheEntry]]:
        for key in self._index():
            entry = self._read(key)
            if entry is not None:
                yield key, entry

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, key: str) -> list[Any] | None:
        """Return the cached payload, or ``None`` on a miss.

        Expired and corrupt entries are deleted as a side effect and
        reported as a miss.
        """
        entry = self._read(key)
        if entry is None:
            _logger.debug("Cache miss %s", key)
            return None
        if is_expired(self._clock(), entry.timestamp, self._expiry_ms):
            _logger.debug("Cache entry %s expired", key)
            self._delete(key)
            return None
        _logger.debug("Cache hit %s (%d items)", key, len(entry.payload))
        return entry.payload

    def set(self, key: str, payload: list[Any]) -> None:
        """Store *payload* under *key* stamped with the current time.

        On an exhausted backend, expired entries are evicted and the write
        is retried once; a second failure drops the write.
        """
        try:
            value = CacheEntry(timestamp=self._clock(), payload=list(payload)).model_dump_json()
        except ValueError:
            _logger.warning("Payload for %s is not serialisable; not cached", key, exc_info=True)
            return

        try:
            self._backend.set(key, value)
        except StorageFullError:
            _logger.info("Cache storage full writing %s; evicting expired entries and retrying", key)
            self.evict_expired()
            try:
                self._backend.set(key, value)
            except CacheError:
                _logger.warning("Cache write for %s dropped after retry", key)
                return
        except CacheError:
            _logger.warning("Cache write for %s failed", key, exc_info=True)
            return

        self.evict_expired()
        self.evict_over_capacity()

    def evict_expired(self) -> int:
        """Delete every expired or corrupt entry. Returns the number removed."""
        now = self._clock()
        removed = 0
        for key in self._index():
            entry = self._read(key)
            if entry is None:
                removed += 1
                continue
            if is_expired(now, entry.timestamp, self._expiry_ms):
                self._delete(key)
                removed += 1
        if removed:
            _logger.debug("Evicted %d expired cache entries", removed)
        return removed

    def evict_over_capacity(self) -> int:
        """Trim to ``retain_entries`` newest entries once ``max_entries`` is exceeded."""
        victims = select_overflow(
            ((key, entry.timestamp) for key, entry in self._iter_entries()),
            max_entries=self._max_entries,
            retain_entries=self._retain_entries,
        )
        for key in victims:
            self._delete(key)
        if victims:
            _logger.debug("Evicted %d cache entries over capacity", len(victims))
        return len(victims)

    def cleanup(self) -> None:
        """Full sweep: expired entries first, then capacity."""
        self.evict_expired()
        self.evict_over_capacity()

    def clear(self) -> None:
        """Delete every entry owned by this store."""
        for key in self._index():
            self._delete(key)

    def __len__(self) -> int:
        return len(self._index())

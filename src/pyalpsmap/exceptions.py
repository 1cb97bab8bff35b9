"""Custom exception hierarchy for pyalpsmap."""

from __future__ import annotations


class MapSyncError(Exception):
    """Base exception for all pyalpsmap errors."""


class MapConfigError(MapSyncError):
    """Invalid or missing configuration."""


class MapTransportError(MapSyncError):
    """HTTP-level failure (network, non-2xx, timeout, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class MapResponseError(MapSyncError):
    """Response decoded as JSON but does not have the expected shape."""

    def __init__(self, message: str, *, url: str = "") -> None:
        self.url = url
        super().__init__(message)


class CacheError(MapSyncError):
    """Cache backend failure.

    Raised by key/value backends only.  :class:`~pyalpsmap.cache.store.CacheStore`
    recovers from these internally and never lets them reach its callers.
    """


class StorageFullError(CacheError):
    """Backend rejected a write because its capacity is exhausted."""

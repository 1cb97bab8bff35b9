"""Key/value substrates for :class:`~pyalpsmap.cache.store.CacheStore`.

Backends store opaque strings and know nothing about expiry or eviction;
that policy lives in the store.  A backend signals an exhausted quota with
:class:`~pyalpsmap.exceptions.StorageFullError`.
"""

from __future__ import annotations

import errno
import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from pyalpsmap.exceptions import CacheError, StorageFullError

_logger = logging.getLogger(__name__)

_QUOTA_ERRNOS: frozenset[int] = frozenset({errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)})


class KeyValueBackend(Protocol):
    """Minimal persistent string store."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def keys(self) -> Iterable[str]:
        ...


def _footprint(key: str, value: str) -> int:
    return len(key) + len(value)


class MemoryBackend:
    """In-process dict backend with an optional byte quota.

    The quota counts key and value characters, like browser storage does.
    """

    def __init__(self, *, max_bytes: int | None = None) -> None:
        self._max_bytes = max_bytes
        self._data: dict[str, str] = {}
        self._size = 0

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        existing = self._data.get(key)
        new_size = self._size + _footprint(key, value)
        if existing is not None:
            new_size -= _footprint(key, existing)
        if self._max_bytes is not None and new_size > self._max_bytes:
            raise StorageFullError(f"writing {key!r} would use {new_size} of {self._max_bytes} bytes")
        self._data[key] = value
        self._size = new_size

    def delete(self, key: str) -> None:
        existing = self._data.pop(key, None)
        if existing is not None:
            self._size -= _footprint(key, existing)

    def keys(self) -> list[str]:
        return list(self._data)

    @property
    def size(self) -> int:
        return self._size


class JsonFileBackend:
    """Single JSON object on disk, rewritten atomically on every mutation.

    The file is read lazily on first access.  A missing file is an empty
    store; an unreadable one is logged and also treated as empty (it is
    replaced by the next successful write).
    """

    def __init__(self, path: str | os.PathLike[str], *, max_bytes: int | None = None) -> None:
        self._path = Path(path)
        self._max_bytes = max_bytes
        self._data: dict[str, str] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if self._data is not None:
            return self._data
        data: dict[str, str] = {}
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            text = ""
        except (OSError, UnicodeDecodeError):
            _logger.warning("Cannot read cache file %s; starting empty", self._path, exc_info=True)
            text = ""
        if text:
            try:
                loaded = json.loads(text)
            except json.JSONDecodeError:
                _logger.warning("Cache file %s is not valid JSON; starting empty", self._path)
                loaded = {}
            if isinstance(loaded, dict):
                data = {str(k): v for k, v in loaded.items() if isinstance(v, str)}
        self._data = data
        return data

    def _flush(self, data: dict[str, str]) -> None:
        text = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
        if self._max_bytes is not None and len(text.encode("utf-8")) > self._max_bytes:
            raise StorageFullError(f"cache file would exceed {self._max_bytes} bytes")
        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", dir=self._path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
            os.replace(tmp_name, self._path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            if exc.errno in _QUOTA_ERRNOS:
                raise StorageFullError(f"no space left for cache file {self._path}") from exc
            raise CacheError(f"cannot write cache file {self._path}: {exc}") from exc

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = dict(self._load())
        data[key] = value
        self._flush(data)
        self._data = data

    def delete(self, key: str) -> None:
        current = self._load()
        if key not in current:
            return
        data = dict(current)
        del data[key]
        self._flush(data)
        self._data = data

    def keys(self) -> list[str]:
        return list(self._load())

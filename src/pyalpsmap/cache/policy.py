"""Expiry and capacity eviction rules.

Pure functions over timestamps; the store does all I/O.
"""

from __future__ import annotations

from collections.abc import Iterable


def is_expired(now_ms: int, written_ms: int, expiry_ms: int) -> bool:
    """An entry is expired once its age strictly exceeds the expiry duration."""
    return now_ms - written_ms > expiry_ms


def select_overflow(
    entries: Iterable[tuple[str, int]],
    *,
    max_entries: int,
    retain_entries: int,
) -> list[str]:
    """Pick keys to delete so that at most *retain_entries* remain.

    Nothing is selected until the count exceeds *max_entries*.  Oldest
    timestamps go first; equal timestamps are ordered by key so the choice
    is deterministic.
    """
    ordered = sorted(entries, key=lambda item: item[0])
    if len(ordered) <= max_entries:
        return []
    ordered.sort(key=lambda item: item[1])
    excess = len(ordered) - retain_entries
    return [key for key, _ in ordered[:excess]]

from __future__ import annotations

import json
from datetime import timedelta

import pytest

from pyalpsmap.cache.backends import MemoryBackend
from pyalpsmap.cache.store import CacheStore
from pyalpsmap.exceptions import StorageFullError

EXPIRY = timedelta(days=7)
EXPIRY_MS = 7 * 24 * 3600 * 1000


def _raw(timestamp: int, payload: list[object] | None = None) -> str:
    return json.dumps({"timestamp": timestamp, "payload": payload if payload is not None else []})


def test_set_then_get_returns_payload(clock) -> None:
    store = CacheStore(MemoryBackend(), clock=clock)
    store.set("peaks_a", [{"id": 1, "name": "槍ヶ岳"}])

    assert store.get("peaks_a") == [{"id": 1, "name": "槍ヶ岳"}]


def test_missing_key_is_miss(clock) -> None:
    store = CacheStore(MemoryBackend(), clock=clock)
    assert store.get("peaks_nope") is None


def test_empty_payload_is_a_hit_not_a_miss(clock) -> None:
    store = CacheStore(MemoryBackend(), clock=clock)
    store.set("peaks_empty", [])
    assert store.get("peaks_empty") == []


def test_timestamp_is_last_write_time(clock) -> None:
    backend = MemoryBackend()
    store = CacheStore(backend, clock=clock)
    store.set("peaks_a", [1])
    first = json.loads(backend.get("peaks_a") or "")["timestamp"]

    clock.advance(5_000)
    store.set("peaks_a", [2])

    assert json.loads(backend.get("peaks_a") or "")["timestamp"] == first + 5_000


def test_expiry_boundary(clock) -> None:
    backend = MemoryBackend()
    store = CacheStore(backend, expiry=EXPIRY, clock=clock)
    store.set("peaks_a", [1])

    clock.advance(EXPIRY_MS - 1)
    assert store.get("peaks_a") == [1]

    clock.advance(2)
    assert store.get("peaks_a") is None
    assert backend.get("peaks_a") is None


def test_entry_exactly_at_expiry_is_still_returned(clock) -> None:
    store = CacheStore(MemoryBackend(), expiry=EXPIRY, clock=clock)
    store.set("peaks_a", [1])
    clock.advance(EXPIRY_MS)
    assert store.get("peaks_a") == [1]


def test_corrupt_entry_is_miss_and_removed(clock) -> None:
    backend = MemoryBackend()
    backend.set("peaks_35.00_138.00_35.50_138.50_v1.0", "{not json")
    store = CacheStore(backend, clock=clock)

    assert store.get("peaks_35.00_138.00_35.50_138.50_v1.0") is None
    assert "peaks_35.00_138.00_35.50_138.50_v1.0" not in backend.keys()


@pytest.mark.parametrize(
    "value",
    [
        json.dumps({"timestamp": "yesterday", "payload": []}),
        json.dumps({"payload": []}),
        json.dumps({"timestamp": 1, "payload": {"not": "a list"}}),
        json.dumps([1, 2, 3]),
    ],
)
def test_wrong_shape_is_treated_as_corrupt(clock, value: str) -> None:
    backend = MemoryBackend()
    backend.set("peaks_x", value)
    store = CacheStore(backend, clock=clock)

    assert store.get("peaks_x") is None
    assert backend.get("peaks_x") is None


def test_evict_over_capacity_keeps_newest(clock) -> None:
    backend = MemoryBackend()
    for i in range(25):
        backend.set(f"peaks_{i:02d}", _raw(clock.now_ms - (25 - i) * 1000, [i]))
    store = CacheStore(backend, max_entries=20, retain_entries=15, clock=clock)

    removed = store.evict_over_capacity()

    assert removed == 10
    assert sorted(backend.keys()) == [f"peaks_{i:02d}" for i in range(10, 25)]


def test_evict_over_capacity_noop_at_limit(clock) -> None:
    backend = MemoryBackend()
    for i in range(20):
        backend.set(f"peaks_{i:02d}", _raw(clock.now_ms - i))
    store = CacheStore(backend, max_entries=20, retain_entries=15, clock=clock)

    assert store.evict_over_capacity() == 0
    assert len(store) == 20


def test_set_never_leaves_more_than_max_entries(clock) -> None:
    store = CacheStore(MemoryBackend(), max_entries=20, retain_entries=15, clock=clock)
    for i in range(21):
        clock.advance(1)
        store.set(f"peaks_{i:02d}", [i])

    assert len(store) == 15
    assert store.get("peaks_20") == [20]
    assert store.get("peaks_05") is None
    assert store.get("peaks_06") == [6]


def test_evict_expired_removes_expired_and_corrupt(clock) -> None:
    backend = MemoryBackend()
    backend.set("peaks_old", _raw(clock.now_ms - EXPIRY_MS - 1))
    backend.set("peaks_fresh", _raw(clock.now_ms))
    backend.set("peaks_bad", "garbage")
    store = CacheStore(backend, expiry=EXPIRY, clock=clock)

    assert store.evict_expired() == 2
    assert backend.keys() == ["peaks_fresh"]


def test_foreign_keys_are_ignored(clock) -> None:
    backend = MemoryBackend()
    backend.set("settings", "garbage that is not ours")
    for i in range(25):
        backend.set(f"peaks_{i:02d}", _raw(clock.now_ms - 100 + i))
    store = CacheStore(backend, clock=clock)

    store.cleanup()

    assert backend.get("settings") == "garbage that is not ours"
    assert len(store) == 15


class _FlakyBackend(MemoryBackend):
    """Rejects the next ``fail_times`` writes as if the quota were exhausted."""

    def __init__(self, fail_times: int) -> None:
        super().__init__()
        self.fail_times = fail_times
        self.attempts = 0

    def set(self, key: str, value: str) -> None:
        self.attempts += 1
        if self.fail_times > 0:
            self.fail_times -= 1
            raise StorageFullError("quota")
        super().set(key, value)


def test_storage_full_evicts_expired_and_retries_once(clock) -> None:
    backend = _FlakyBackend(fail_times=0)
    backend.set("peaks_old", _raw(clock.now_ms - EXPIRY_MS - 10))
    backend.fail_times = 1
    backend.attempts = 0
    store = CacheStore(backend, expiry=EXPIRY, clock=clock)

    store.set("peaks_new", [1])

    assert backend.attempts == 2
    assert backend.get("peaks_old") is None
    assert store.get("peaks_new") == [1]


def test_storage_full_twice_drops_write_silently(clock) -> None:
    backend = _FlakyBackend(fail_times=2)
    store = CacheStore(backend, clock=clock)

    store.set("peaks_new", [1])

    assert backend.attempts == 2
    assert store.get("peaks_new") is None


def test_memory_quota_exhaustion_is_recovered(clock) -> None:
    backend = MemoryBackend(max_bytes=120)
    store = CacheStore(backend, expiry=EXPIRY, clock=clock)
    store.set("peaks_a", [1])
    clock.advance(EXPIRY_MS + 1)

    store.set("peaks_b", ["x" * 40])

    assert store.get("peaks_a") is None
    assert store.get("peaks_b") == ["x" * 40]


def test_clear_removes_only_own_keys(clock) -> None:
    backend = MemoryBackend()
    backend.set("trails_x", "keep")
    store = CacheStore(backend, clock=clock)
    store.set("peaks_a", [1])
    store.set("peaks_b", [2])

    store.clear()

    assert backend.keys() == ["trails_x"]


def test_retain_above_max_is_rejected() -> None:
    with pytest.raises(ValueError):
        CacheStore(MemoryBackend(), max_entries=5, retain_entries=6)

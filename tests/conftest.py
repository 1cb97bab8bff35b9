from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import pytest

from pyalpsmap.models.features import DatasetKind, Feature
from pyalpsmap.models.viewport import Viewport


@dataclass
class _FakeTimer:
    when: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Virtual-time ``call_later`` source."""

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: list[_FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> _FakeTimer:
        timer = _FakeTimer(when=self.now + delay, callback=callback)
        self._timers.append(timer)
        return timer

    @property
    def armed(self) -> int:
        return sum(1 for timer in self._timers if not timer.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.when <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self._timers.remove(timer)
            self.now = timer.when
            timer.callback()
        self.now = target


class FakeRenderer:
    def __init__(self, *, fail_on: set[DatasetKind] | None = None) -> None:
        self.ops: list[tuple[Any, ...]] = []
        self.layers: dict[DatasetKind, list[Feature]] = {}
        self.fail_on = fail_on or set()

    def remove_layer(self, kind: DatasetKind) -> None:
        self.ops.append(("remove", kind))
        self.layers.pop(kind, None)

    def add_layer(self, kind: DatasetKind, features: Sequence[Feature]) -> None:
        if kind in self.fail_on:
            raise RuntimeError(f"cannot add {kind}")
        self.ops.append(("add", kind, len(features)))
        self.layers[kind] = list(features)


class ManualClock:
    """Epoch-millis clock for cache tests."""

    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def alps_viewport() -> Viewport:
    return Viewport(south=35.0, west=138.0, north=35.5, east=138.5, zoom=10)

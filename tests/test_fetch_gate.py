from __future__ import annotations

import asyncio

import pytest

from pyalpsmap.gate import FetchGate, ScheduledTask
from pyalpsmap.models.viewport import Viewport


def _vp(zoom: float) -> Viewport:
    return Viewport(south=36.2, west=137.6, north=36.3, east=137.7, zoom=zoom)


def _gate(scheduler, fired: list[tuple[float, Viewport]], **kwargs) -> FetchGate:
    return FetchGate(
        lambda viewport: fired.append((scheduler.now, viewport)),
        scheduler=scheduler,
        clock=lambda: scheduler.now,
        **kwargs,
    )


def test_debounce_collapses_burst_into_one_cycle(scheduler) -> None:
    fired: list[tuple[float, Viewport]] = []
    gate = _gate(scheduler, fired, delay=1.0)

    for i in range(10):
        if i:
            scheduler.advance(0.1)
        gate.trigger(_vp(10 + i * 0.1))
    last_event_at = scheduler.now

    scheduler.advance(0.999)
    assert fired == []
    assert gate.pending

    scheduler.advance(0.002)
    assert len(fired) == 1
    assert fired[0][0] == pytest.approx(last_event_at + 1.0)
    assert fired[0][1].zoom == pytest.approx(10.9)
    assert not gate.pending


def test_only_one_timer_armed_at_a_time(scheduler) -> None:
    gate = _gate(scheduler, [], delay=1.0)
    for _ in range(5):
        gate.trigger(_vp(10))
    assert scheduler.armed == 1


def test_separate_quiet_windows_fire_separately(scheduler) -> None:
    fired: list[tuple[float, Viewport]] = []
    gate = _gate(scheduler, fired, delay=1.0)

    gate.trigger(_vp(10))
    scheduler.advance(1.5)
    gate.trigger(_vp(11))
    scheduler.advance(1.5)

    assert [round(at, 3) for at, _ in fired] == [1.0, 2.5]


def test_zoom_gate_blocks_world_scale(scheduler) -> None:
    fired: list[tuple[float, Viewport]] = []
    gate = _gate(scheduler, fired, min_zoom=8)

    gate.trigger(_vp(7))
    scheduler.advance(2.0)
    assert fired == []

    gate.trigger(_vp(9))
    scheduler.advance(2.0)
    assert len(fired) == 1


def test_zoom_exactly_at_threshold_is_skipped(scheduler) -> None:
    gate = _gate(scheduler, [], min_zoom=8)
    assert not gate.should_refresh(_vp(8))
    assert gate.should_refresh(_vp(8.01))


def test_cooldown_between_cycles(scheduler) -> None:
    fired: list[tuple[float, Viewport]] = []
    gate = _gate(scheduler, fired, delay=1.0, min_interval=5.0)

    gate.trigger(_vp(10))
    scheduler.advance(1.0)
    gate.trigger(_vp(10))
    scheduler.advance(1.0)
    assert len(fired) == 1

    scheduler.advance(3.0)
    gate.trigger(_vp(10))
    scheduler.advance(1.0)
    assert len(fired) == 2


def test_close_cancels_pending_and_ignores_later_triggers(scheduler) -> None:
    fired: list[tuple[float, Viewport]] = []
    gate = _gate(scheduler, fired)

    gate.trigger(_vp(10))
    gate.close()
    gate.trigger(_vp(10))
    scheduler.advance(5.0)

    assert fired == []
    assert not gate.pending


def test_callback_errors_do_not_escape(scheduler) -> None:
    def _boom(_viewport: Viewport) -> None:
        raise RuntimeError("boom")

    gate = FetchGate(_boom, scheduler=scheduler, clock=lambda: scheduler.now)
    gate.trigger(_vp(10))
    scheduler.advance(1.0)
    assert not gate.pending


def test_scheduled_task_replaces_previous(scheduler) -> None:
    calls: list[str] = []
    task = ScheduledTask(scheduler)
    task.schedule(1.0, lambda: calls.append("first"))
    task.schedule(1.0, lambda: calls.append("second"))
    scheduler.advance(1.0)
    assert calls == ["second"]


@pytest.mark.asyncio
async def test_async_callback_runs_on_event_loop() -> None:
    done = asyncio.Event()
    seen: list[Viewport] = []

    async def _refresh(viewport: Viewport) -> None:
        seen.append(viewport)
        done.set()

    gate = FetchGate(_refresh, delay=0.01)
    gate.trigger(_vp(10))
    await asyncio.wait_for(done.wait(), timeout=1.0)

    assert len(seen) == 1
    gate.close()


@pytest.mark.asyncio
async def test_close_cancels_running_cycle() -> None:
    started = asyncio.Event()
    release = asyncio.Event()
    cancelled = asyncio.Event()

    async def _refresh(_viewport: Viewport) -> None:
        started.set()
        try:
            await release.wait()
        except asyncio.CancelledError:
            cancelled.set()
            raise

    gate = FetchGate(_refresh, delay=0.0)
    gate.trigger(_vp(10))
    await asyncio.wait_for(started.wait(), timeout=1.0)

    gate.close()
    await asyncio.wait_for(cancelled.wait(), timeout=1.0)

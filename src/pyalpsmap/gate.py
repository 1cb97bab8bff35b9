"""Refresh gating: trailing-edge debounce plus zoom threshold.

A camera-movement burst collapses into at most one refresh attempt per
quiet window.  When the timer fires, the viewport must be zoomed in past
``min_zoom`` (and the optional cooldown must have elapsed) before the
refresh callback runs; otherwise the cycle is skipped without touching
the network or the cache.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from pyalpsmap.models.viewport import Viewport

_logger = logging.getLogger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Anything with ``call_later`` semantics, e.g. an asyncio event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        ...


class ScheduledTask:
    """Single-slot cancellable timer.

    ``schedule`` always cancels the previously armed callback first, so
    at most one callback is pending at any time.
    """

    def __init__(self, scheduler: Scheduler | None = None) -> None:
        self._scheduler = scheduler
        self._handle: Cancellable | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, delay: float, fn: Callable[[], None]) -> None:
        self.cancel()
        scheduler: Scheduler = self._scheduler if self._scheduler is not None else asyncio.get_running_loop()

        def _run() -> None:
            self._handle = None
            fn()

        self._handle = scheduler.call_later(delay, _run)

    def cancel(self) -> None:
        handle = self._handle
        self._handle = None
        if handle is not None:
            handle.cancel()


RefreshCallback = Callable[[Viewport], Awaitable[Any] | None]


class FetchGate:
    """Decide when a refresh cycle may start.

    Parameters
    ----------
    on_refresh : callable
        Invoked with the settled viewport once a cycle is approved.  May
        return an awaitable; it is then run as a task owned by the gate.
    delay : float
        Quiet period in seconds after the last ``trigger``.
    min_zoom : float
        Cycles only run when ``viewport.zoom`` is strictly greater.
    min_interval : float
        Cooldown in seconds between approved cycles; ``0`` disables it.
    scheduler : Scheduler or None
        Timer source.  Defaults to the running asyncio loop.
    clock : callable
        Monotonic seconds, used for the cooldown.
    """

    def __init__(
        self,
        on_refresh: RefreshCallback,
        *,
        delay: float = 1.0,
        min_zoom: float = 8.0,
        min_interval: float = 0.0,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._on_refresh = on_refresh
        self._delay = delay
        self._min_zoom = min_zoom
        self._min_interval = min_interval
        self._clock = clock
        self._timer = ScheduledTask(scheduler)
        self._last_refresh: float | None = None
        self._tasks: set[asyncio.Future[Any]] = set()
        self._closed = False

    @property
    def pending(self) -> bool:
        """Whether a debounced refresh is currently armed."""
        return self._timer.pending

    def should_refresh(self, viewport: Viewport, now: float | None = None) -> bool:
        if viewport.zoom <= self._min_zoom:
            return False
        if self._min_interval > 0 and self._last_refresh is not None:
            current = self._clock() if now is None else now
            if current - self._last_refresh < self._min_interval:
                return False
        return True

    def trigger(self, viewport: Viewport) -> None:
        """Record a camera movement; restarts the quiet period."""
        if self._closed:
            return
        self._timer.schedule(self._delay, lambda: self._fire(viewport))

    def _fire(self, viewport: Viewport) -> None:
        now = self._clock()
        if not self.should_refresh(viewport, now):
            _logger.debug("Refresh skipped at zoom %.2f", viewport.zoom)
            return
        self._last_refresh = now
        try:
            result = self._on_refresh(viewport)
        except Exception:
            _logger.exception("Refresh callback failed")
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Future[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Refresh cycle failed", exc_info=exc)

    def close(self) -> None:
        """End of map session: drop the pending timer and running cycles."""
        self._closed = True
        self._timer.cancel()
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

"""Viewport-synchronised fetch-and-render cycles.

One :class:`DataSyncOrchestrator` exists per map session and owns all
mutable sync state.  Each approved refresh starts a cycle that fetches
every enabled dataset concurrently.  Datasets fail independently: a
failure is logged and never aborts siblings or reaches the caller.

Cycles may overlap and requests are never cancelled.  Every cycle gets a
monotonically increasing generation; a dataset result is only applied if
no newer generation has already been applied for that dataset, so a slow
response cannot overwrite fresher map state.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol

from pydantic import ValidationError

from pyalpsmap._fallback import FALLBACK_PEAKS, fallback_peaks_for
from pyalpsmap.cache.store import CacheStore
from pyalpsmap.exceptions import MapSyncError
from pyalpsmap.models.features import DatasetKind, Feature, Peak
from pyalpsmap.models.viewport import Viewport
from pyalpsmap.quantize import ViewportQuantizer

_logger = logging.getLogger(__name__)

DEFAULT_DATASETS: tuple[DatasetKind, ...] = (
    DatasetKind.PEAKS,
    DatasetKind.TRAILS,
    DatasetKind.HUTS,
    DatasetKind.WATER,
)

DatasetFetcher = Callable[[DatasetKind, Viewport], Awaitable[Sequence[Feature]]]


class Renderer(Protocol):
    """Map layer sink.  Each dataset is replaced wholesale, never patched."""

    def remove_layer(self, kind: DatasetKind) -> None:
        ...

    def add_layer(self, kind: DatasetKind, features: Sequence[Feature]) -> None:
        ...


class DatasetOutcome(StrEnum):
    FETCHED = "fetched"
    CACHE_HIT = "cache_hit"
    FALLBACK = "fallback"
    FAILED = "failed"
    STALE = "stale"


@dataclass(slots=True)
class FetchCycleState:
    """Transient bookkeeping for one refresh cycle."""

    generation: int
    viewport: Viewport
    in_flight: set[DatasetKind] = field(default_factory=set)
    outcomes: dict[DatasetKind, DatasetOutcome] = field(default_factory=dict)
    counts: dict[DatasetKind, int] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SyncCycleReport:
    """What a settled cycle did, per dataset."""

    generation: int
    viewport: Viewport
    outcomes: dict[DatasetKind, DatasetOutcome]
    counts: dict[DatasetKind, int]

    def applied(self, kind: DatasetKind) -> bool:
        return self.outcomes.get(kind) in {
            DatasetOutcome.FETCHED,
            DatasetOutcome.CACHE_HIT,
            DatasetOutcome.FALLBACK,
        }


class DataSyncOrchestrator:
    """Coordinate per-dataset fetch, cache and render for settled viewports.

    Parameters
    ----------
    fetch : callable
        ``async (kind, viewport) -> features``.  Expected to raise
        :class:`MapSyncError` on transport or response-shape failures.
    renderer : Renderer
        Receives ``remove_layer`` then ``add_layer`` for each applied result.
    cache : CacheStore
        Peaks cache.
    datasets : iterable of DatasetKind
        Dataset classes fetched every cycle.
    quantizer : ViewportQuantizer
        Cache key builder for peaks.
    fallback_peaks : tuple of Peak
        Substituted (filtered to the viewport) when the peaks fetch fails.
    """

    def __init__(
        self,
        fetch: DatasetFetcher,
        renderer: Renderer,
        cache: CacheStore,
        *,
        datasets: Iterable[DatasetKind] = DEFAULT_DATASETS,
        quantizer: ViewportQuantizer | None = None,
        fallback_peaks: tuple[Peak, ...] = FALLBACK_PEAKS,
    ) -> None:
        self._fetch = fetch
        self._renderer = renderer
        self._cache = cache
        self._datasets: tuple[DatasetKind, ...] = tuple(dict.fromkeys(DatasetKind(k) for k in datasets))
        self._quantizer = quantizer or ViewportQuantizer()
        self._fallback_peaks = fallback_peaks
        self._generation = 0
        self._applied_generation: dict[DatasetKind, int] = {}
        self._cycles: dict[int, FetchCycleState] = {}

    @property
    def datasets(self) -> tuple[DatasetKind, ...]:
        return self._datasets

    @property
    def generation(self) -> int:
        """Generation of the most recently started cycle (0 before any)."""
        return self._generation

    @property
    def in_flight(self) -> dict[int, frozenset[DatasetKind]]:
        """Datasets still outstanding, keyed by cycle generation."""
        return {gen: frozenset(state.in_flight) for gen, state in self._cycles.items()}

    async def on_viewport_settled(self, viewport: Viewport) -> SyncCycleReport:
        """Run one refresh cycle for *viewport*.  Never raises for dataset failures."""
        self._generation += 1
        state = FetchCycleState(
            generation=self._generation,
            viewport=viewport,
            in_flight=set(self._datasets),
        )
        self._cycles[state.generation] = state
        _logger.debug("Cycle %d started for %s", state.generation, viewport.bbox_string())
        try:
            results = await asyncio.gather(
                *(self._sync_dataset(state, kind) for kind in self._datasets),
                return_exceptions=True,
            )
        finally:
            self._cycles.pop(state.generation, None)

        for kind, result in zip(self._datasets, results, strict=True):
            if isinstance(result, BaseException):
                _logger.error("Unexpected error syncing %s", kind.value, exc_info=result)
                state.outcomes[kind] = DatasetOutcome.FAILED

        report = SyncCycleReport(
            generation=state.generation,
            viewport=viewport,
            outcomes=dict(state.outcomes),
            counts=dict(state.counts),
        )
        _logger.info(
            "Cycle %d settled: %s",
            state.generation,
            ", ".join(f"{kind.value}={outcome.value}" for kind, outcome in report.outcomes.items()),
        )
        return report

    # ------------------------------------------------------------------
    # Per-dataset flow
    # ------------------------------------------------------------------

    async def _sync_dataset(self, state: FetchCycleState, kind: DatasetKind) -> None:
        try:
            try:
                if kind == DatasetKind.PEAKS:
                    outcome, features = await self._load_peaks(state.viewport)
                else:
                    features = list(await self._fetch(kind, state.viewport))
                    outcome = DatasetOutcome.FETCHED
            except Exception as exc:
                self._log_fetch_failure(state, kind, exc)
                if kind != DatasetKind.PEAKS:
                    state.outcomes[kind] = DatasetOutcome.FAILED
                    return
                features = fallback_peaks_for(state.viewport, self._fallback_peaks)
                outcome = DatasetOutcome.FALLBACK
            self._apply(state, kind, features, outcome)
        finally:
            state.in_flight.discard(kind)

    @staticmethod
    def _log_fetch_failure(state: FetchCycleState, kind: DatasetKind, exc: Exception) -> None:
        if isinstance(exc, MapSyncError):
            _logger.warning("Cycle %d: %s fetch failed: %s", state.generation, kind.value, exc)
        else:
            _logger.warning("Cycle %d: %s fetch failed", state.generation, kind.value, exc_info=exc)

    async def _load_peaks(self, viewport: Viewport) -> tuple[DatasetOutcome, list[Feature]]:
        """Cache-first peaks lookup.

        Peaks are fetched for the quantised box so the cached payload
        covers every viewport that maps to the same key.
        """
        key = self._quantizer.quantize(viewport)
        cached = self._cache.get(key)
        if cached is not None:
            peaks = self._decode_peaks(key, cached)
            if peaks is not None:
                return DatasetOutcome.CACHE_HIT, peaks

        covering = self._quantizer.covering_viewport(viewport)
        features = list(await self._fetch(DatasetKind.PEAKS, covering))
        self._cache.set(key, [feature.model_dump(mode="json") for feature in features])
        return DatasetOutcome.FETCHED, features

    @staticmethod
    def _decode_peaks(key: str, payload: list[Any]) -> list[Feature] | None:
        try:
            return [Peak.model_validate(item) for item in payload]
        except ValidationError:
            _logger.warning("Cached peaks under %s do not match the peak model; refetching", key)
            return None

    def _apply(
        self,
        state: FetchCycleState,
        kind: DatasetKind,
        features: Sequence[Feature],
        outcome: DatasetOutcome,
    ) -> None:
        applied = self._applied_generation.get(kind, 0)
        if state.generation < applied:
            _logger.debug(
                "Cycle %d: discarding stale %s (generation %d already applied)",
                state.generation,
                kind.value,
                applied,
            )
            state.outcomes[kind] = DatasetOutcome.STALE
            return
        try:
            self._renderer.remove_layer(kind)
            self._renderer.add_layer(kind, features)
        except Exception:
            _logger.warning("Cycle %d: renderer failed to apply %s", state.generation, kind.value, exc_info=True)
            state.outcomes[kind] = DatasetOutcome.FAILED
            return
        self._applied_generation[kind] = state.generation
        state.outcomes[kind] = outcome
        state.counts[kind] = len(features)

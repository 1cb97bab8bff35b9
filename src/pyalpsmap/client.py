"""High-level async client tying the sync core to one map session."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp
from pydantic import ValidationError

from pyalpsmap._api.elevation import fetch_api_elevation
from pyalpsmap._api.overpass import fetch_dataset
from pyalpsmap._api.weather import fetch_current_weather
from pyalpsmap._transport import HttpTransport, Transport
from pyalpsmap.cache.backends import JsonFileBackend, KeyValueBackend, MemoryBackend
from pyalpsmap.cache.store import CacheStore
from pyalpsmap.config import MapSyncConfig
from pyalpsmap.elevation import ElevationResolver, TerrainSampler
from pyalpsmap.exceptions import MapSyncError
from pyalpsmap.gate import FetchGate, Scheduler
from pyalpsmap.models.elevation import ElevationResult
from pyalpsmap.models.features import DatasetKind, Feature
from pyalpsmap.models.viewport import Viewport
from pyalpsmap.models.weather import WeatherConditions
from pyalpsmap.quantize import ViewportQuantizer
from pyalpsmap.sync import DataSyncOrchestrator, Renderer, SyncCycleReport

_logger = logging.getLogger(__name__)


class MapDataClient:
    """Async client for viewport-scoped map data.

    Usage::

        async with MapDataClient(config, renderer=layers, terrain=terrain) as client:
            client.on_viewport_changed(viewport)
            elevation = await client.resolve_elevation(137.6476, 36.3420)

    Parameters
    ----------
    config : MapSyncConfig
        Client configuration.
    renderer : Renderer
        Layer sink for fetched datasets.
    terrain : TerrainSampler or None
        In-memory terrain used by elevation lookups.
    session : aiohttp.ClientSession or None
        Shared HTTP session.  When omitted the client creates and closes
        its own.
    transport : Transport or None
        Overrides the HTTP transport entirely (tests, recording proxies).
    backend : KeyValueBackend or None
        Overrides the cache substrate chosen from ``config.cache_path``.
    scheduler : Scheduler or None
        Debounce timer source; defaults to the running event loop.
    """

    def __init__(
        self,
        config: MapSyncConfig,
        *,
        renderer: Renderer,
        terrain: TerrainSampler | None = None,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        backend: KeyValueBackend | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._config = config
        self._renderer = renderer
        self._terrain = terrain
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._injected_transport = transport is not None
        self._backend = backend
        self._scheduler = scheduler
        self._cache: CacheStore | None = None
        self._gate: FetchGate | None = None
        self._resolver: ElevationResolver | None = None
        self._orchestrator: DataSyncOrchestrator | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> MapDataClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)

        self._cache = CacheStore(
            self._backend if self._backend is not None else self._build_backend(),
            prefix=self._quantizer().prefix,
            max_entries=self._config.cache_max_entries,
            retain_entries=self._config.cache_retain_entries,
            expiry=self._config.cache_expiry,
        )
        self._cache.cleanup()

        self._orchestrator = DataSyncOrchestrator(
            self._fetch_dataset,
            self._renderer,
            self._cache,
            datasets=self._enabled_datasets(),
            quantizer=self._quantizer(),
        )
        self._gate = FetchGate(
            self._orchestrator.on_viewport_settled,
            delay=self._config.debounce_delay,
            min_zoom=self._config.min_zoom,
            min_interval=self._config.min_refresh_interval,
            scheduler=self._scheduler,
        )
        self._resolver = ElevationResolver(
            self._fetch_api_elevation,
            self._terrain,
            order=self._config.elevation_order,
            terrain_band=self._config.terrain_band,
            fallback_terrain_band=self._config.fallback_terrain_band,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._gate is not None:
            self._gate.close()
            self._gate = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._injected_transport:
            self._transport = None
        self._orchestrator = None
        self._resolver = None
        self._cache = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _build_backend(self) -> KeyValueBackend:
        if self._config.cache_path:
            _logger.debug("Using JSON file cache at %s", self._config.cache_path)
            return JsonFileBackend(self._config.cache_path, max_bytes=self._config.cache_max_bytes)
        return MemoryBackend(max_bytes=self._config.cache_max_bytes)

    def _quantizer(self) -> ViewportQuantizer:
        return ViewportQuantizer(version=self._config.cache_schema_version)

    def _enabled_datasets(self) -> list[DatasetKind]:
        datasets = [DatasetKind.PEAKS, DatasetKind.TRAILS, DatasetKind.WATER]
        if self._config.huts_enabled:
            datasets.append(DatasetKind.HUTS)
        if self._config.rivers_enabled:
            datasets.append(DatasetKind.RIVERS)
        return datasets

    def _require_transport(self) -> Transport:
        if self._transport is None or self._orchestrator is None:
            raise MapSyncError("Client not initialized. Use 'async with MapDataClient(...) as client:'")
        return self._transport

    async def _fetch_dataset(self, kind: DatasetKind, viewport: Viewport) -> list[Feature]:
        return await fetch_dataset(self._config, self._require_transport(), kind, viewport)

    async def _fetch_api_elevation(self, longitude: float, latitude: float) -> float | None:
        return await fetch_api_elevation(self._config, self._require_transport(), longitude, latitude)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def cache(self) -> CacheStore:
        self._require_transport()
        assert self._cache is not None  # noqa: S101
        return self._cache

    @property
    def orchestrator(self) -> DataSyncOrchestrator:
        self._require_transport()
        assert self._orchestrator is not None  # noqa: S101
        return self._orchestrator

    def on_viewport_changed(self, viewport: Viewport) -> None:
        """Feed a camera-settled event; the refresh runs after the quiet period."""
        self._require_transport()
        assert self._gate is not None  # noqa: S101
        self._gate.trigger(viewport)

    async def refresh(self, viewport: Viewport) -> SyncCycleReport | None:
        """Run a cycle now, skipping the debounce but not the zoom gate.

        Returns ``None`` when the viewport is zoomed out too far.
        """
        self._require_transport()
        assert self._gate is not None and self._orchestrator is not None  # noqa: S101
        if not self._gate.should_refresh(viewport):
            return None
        return await self._orchestrator.on_viewport_settled(viewport)

    async def resolve_elevation(self, longitude: float, latitude: float) -> ElevationResult:
        """Elevation at a point; never raises for source failures."""
        self._require_transport()
        assert self._resolver is not None  # noqa: S101
        return await self._resolver.resolve(longitude, latitude)

    async def get_weather(self, latitude: float, longitude: float) -> WeatherConditions | None:
        """Current conditions at a point, or ``None`` when unavailable."""
        transport = self._require_transport()
        try:
            return await fetch_current_weather(self._config, transport, latitude, longitude)
        except (MapSyncError, ValidationError) as exc:
            _logger.warning("Weather lookup failed for %.4f,%.4f: %s", latitude, longitude, exc)
            return None

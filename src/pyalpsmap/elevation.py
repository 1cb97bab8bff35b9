"""Elevation resolution through an ordered chain of sources.

Two policies exist and they can disagree near band edges:

* ``TERRAIN_FIRST``: trust the renderer's terrain sample when it lies
  inside ``terrain_band``, otherwise ask the elevation API.
* ``API_FIRST``: trust any numeric API value, otherwise fall back to the
  terrain sample with the vertical exaggeration divided out, validated
  against the tighter ``fallback_terrain_band``.

If no source yields a plausible value the result is explicitly
unavailable.  Source failures are logged and never raised.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Awaitable, Callable
from typing import Protocol

from pyalpsmap.config import ElevationOrder
from pyalpsmap.ingestion.normalize import round_half_up, safe_float
from pyalpsmap.models.elevation import ElevationResult, ElevationSource

_logger = logging.getLogger(__name__)

Band = tuple[float, float]
ApiElevationFetcher = Callable[[float, float], Awaitable[float | None]]


class TerrainSampler(Protocol):
    """The renderer's in-memory terrain model."""

    def query_terrain_elevation(self, longitude: float, latitude: float) -> float | None:
        ...

    def exaggeration(self) -> float:
        ...


def _within(value: float, band: Band) -> bool:
    low, high = band
    return low < value < high


class ElevationResolver:
    """Resolve an elevation for a coordinate.

    Parameters
    ----------
    fetch_api : callable
        ``async (longitude, latitude) -> float | None`` querying the
        elevation API.  ``None`` means the API has no value.
    terrain : TerrainSampler or None
        Terrain source; ``None`` disables the terrain step.
    order : ElevationOrder
        Which source is consulted first.
    terrain_band : tuple of float
        Exclusive plausible range for terrain-first samples.
    fallback_terrain_band : tuple of float
        Exclusive plausible range for the api-first terrain fallback.
    """

    def __init__(
        self,
        fetch_api: ApiElevationFetcher,
        terrain: TerrainSampler | None = None,
        *,
        order: ElevationOrder = ElevationOrder.API_FIRST,
        terrain_band: Band = (-500.0, 10000.0),
        fallback_terrain_band: Band = (-500.0, 4000.0),
    ) -> None:
        self._fetch_api = fetch_api
        self._terrain = terrain
        self._order = ElevationOrder(order)
        self._terrain_band = terrain_band
        self._fallback_terrain_band = fallback_terrain_band

    @property
    def order(self) -> ElevationOrder:
        return self._order

    async def resolve(self, longitude: float, latitude: float) -> ElevationResult:
        if self._order == ElevationOrder.TERRAIN_FIRST:
            result = self._from_terrain(longitude, latitude, self._terrain_band, correct=False)
            if result is None:
                result = await self._from_api(longitude, latitude)
        else:
            result = await self._from_api(longitude, latitude)
            if result is None:
                result = self._from_terrain(longitude, latitude, self._fallback_terrain_band, correct=True)

        if result is None:
            _logger.debug("No elevation available for %.5f,%.5f", longitude, latitude)
            return ElevationResult.unavailable()
        return result

    async def _from_api(self, longitude: float, latitude: float) -> ElevationResult | None:
        try:
            raw = await self._fetch_api(longitude, latitude)
        except Exception:
            _logger.warning("Elevation API lookup failed for %.5f,%.5f", longitude, latitude, exc_info=True)
            return None
        value = safe_float(raw)
        if value is None:
            return None
        return ElevationResult(value=round_half_up(value), source=ElevationSource.PRIMARY_API)

    def _from_terrain(
        self,
        longitude: float,
        latitude: float,
        band: Band,
        *,
        correct: bool,
    ) -> ElevationResult | None:
        if self._terrain is None:
            return None
        try:
            sample = safe_float(self._terrain.query_terrain_elevation(longitude, latitude))
            if sample is not None and correct:
                factor = safe_float(self._terrain.exaggeration())
                if factor is not None and factor > 0 and not math.isclose(factor, 1.0):
                    sample /= factor
        except Exception:
            _logger.warning("Terrain sample failed for %.5f,%.5f", longitude, latitude, exc_info=True)
            return None
        if sample is None or not _within(sample, band):
            _logger.debug("Terrain sample %r outside plausible band %s", sample, band)
            return None
        return ElevationResult(value=round_half_up(sample), source=ElevationSource.TERRAIN_QUERY)

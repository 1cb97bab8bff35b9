"""Viewport quantization into stable cache keys.

South/west edges are rounded *down* and north/east edges *up* to a fixed
grid, so the quantised box always covers the real viewport.  Camera
jitter inside one grid cell maps to the same key; a new key appears only
once an edge crosses a grid line.
"""

from __future__ import annotations

import math

from pyalpsmap._constants import CACHE_SCHEMA_VERSION, PEAKS_CACHE_PREFIX, QUANTIZE_PRECISION
from pyalpsmap.models.viewport import Viewport

# Tolerance for float artefacts such as 35.0 * 100 == 3500.0000000000005.
_SNAP_EPSILON = 1e-9

Bounds = tuple[float, float, float, float]


def _scaled(value: float, precision: int) -> float:
    scaled = value * (10**precision)
    nearest = round(scaled)
    if abs(scaled - nearest) < _SNAP_EPSILON:
        return float(nearest)
    return scaled


def floor_to_grid(value: float, precision: int = QUANTIZE_PRECISION) -> float:
    return math.floor(_scaled(value, precision)) / (10**precision)


def ceil_to_grid(value: float, precision: int = QUANTIZE_PRECISION) -> float:
    return math.ceil(_scaled(value, precision)) / (10**precision)


def quantize_bounds(viewport: Viewport, precision: int = QUANTIZE_PRECISION) -> Bounds:
    """Return the quantised ``(south, west, north, east)`` covering *viewport*."""
    return (
        floor_to_grid(viewport.south, precision),
        floor_to_grid(viewport.west, precision),
        ceil_to_grid(viewport.north, precision),
        ceil_to_grid(viewport.east, precision),
    )


def quantize_viewport(
    viewport: Viewport,
    *,
    prefix: str = PEAKS_CACHE_PREFIX,
    version: str = CACHE_SCHEMA_VERSION,
    precision: int = QUANTIZE_PRECISION,
) -> str:
    """Build the cache key ``<prefix>_<S>_<W>_<N>_<E>_v<version>``.

    Pure function: zoom does not participate, and no I/O happens.

    >>> quantize_viewport(Viewport(south=35.0, west=138.0, north=35.5, east=138.5, zoom=10))
    'peaks_35.00_138.00_35.50_138.50_v1.0'
    """
    edges = "_".join(f"{edge:.{precision}f}" for edge in quantize_bounds(viewport, precision))
    return f"{prefix}_{edges}_v{version}"


class ViewportQuantizer:
    """Key builder bound to one prefix, schema version and grid precision."""

    def __init__(
        self,
        *,
        prefix: str = PEAKS_CACHE_PREFIX,
        version: str = CACHE_SCHEMA_VERSION,
        precision: int = QUANTIZE_PRECISION,
    ) -> None:
        self.prefix = prefix
        self.version = version
        self.precision = precision

    def quantize(self, viewport: Viewport) -> str:
        return quantize_viewport(viewport, prefix=self.prefix, version=self.version, precision=self.precision)

    def covering_viewport(self, viewport: Viewport) -> Viewport:
        """The quantised box as a viewport (same zoom); always contains *viewport*."""
        south, west, north, east = quantize_bounds(viewport, self.precision)
        return Viewport(south=south, west=west, north=north, east=east, zoom=viewport.zoom)

    def __call__(self, viewport: Viewport) -> str:
        return self.quantize(viewport)

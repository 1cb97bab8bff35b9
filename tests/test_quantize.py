from __future__ import annotations

import pytest

from pyalpsmap.models.viewport import Viewport
from pyalpsmap.quantize import ViewportQuantizer, quantize_bounds, quantize_viewport


def _vp(south: float, west: float, north: float, east: float, zoom: float = 10) -> Viewport:
    return Viewport(south=south, west=west, north=north, east=east, zoom=zoom)


def test_reference_viewport_key(alps_viewport: Viewport) -> None:
    assert quantize_viewport(alps_viewport) == "peaks_35.00_138.00_35.50_138.50_v1.0"


def test_south_west_round_down_north_east_round_up() -> None:
    assert quantize_bounds(_vp(36.2341, 137.6112, 36.3001, 137.7099)) == (36.23, 137.61, 36.31, 137.71)


def test_viewports_in_same_cell_share_key() -> None:
    a = _vp(36.231, 137.611, 36.301, 137.701)
    b = _vp(36.239, 137.619, 36.309, 137.709)
    assert quantize_viewport(a) == quantize_viewport(b)


def test_zoom_does_not_affect_key() -> None:
    assert quantize_viewport(_vp(36.2, 137.6, 36.3, 137.7, zoom=9)) == quantize_viewport(
        _vp(36.2, 137.6, 36.3, 137.7, zoom=14)
    )


def test_shrinking_inside_cell_keeps_key() -> None:
    base = _vp(36.231, 137.611, 36.309, 137.709)
    shrunk = _vp(36.235, 137.615, 36.305, 137.705)
    assert quantize_viewport(base) == quantize_viewport(shrunk)


def test_expansion_changes_key_only_after_crossing_grid_line() -> None:
    base = _vp(36.231, 137.611, 36.301, 137.701)
    inside = _vp(36.231, 137.611, 36.309, 137.701)
    crossed = _vp(36.231, 137.611, 36.311, 137.701)
    assert quantize_viewport(inside) == quantize_viewport(base)
    assert quantize_viewport(crossed) != quantize_viewport(base)
    assert quantize_viewport(crossed).split("_")[3] == "36.32"


def test_float_artefacts_on_grid_lines_are_snapped() -> None:
    # 35.0 * 100 and 0.29 * 100 are not exact in binary floating point.
    assert quantize_bounds(_vp(0.29, 35.0, 0.57, 138.5)) == (0.29, 35.0, 0.57, 138.5)


def test_negative_coordinates() -> None:
    key = quantize_viewport(_vp(-33.951, -70.455, -33.901, -70.401))
    assert key == "peaks_-33.96_-70.46_-33.90_-70.40_v1.0"


def test_quantizer_binds_prefix_and_version(alps_viewport: Viewport) -> None:
    quantizer = ViewportQuantizer(prefix="huts", version="2.1")
    assert quantizer(alps_viewport) == "huts_35.00_138.00_35.50_138.50_v2.1"


def test_covering_viewport_contains_original() -> None:
    original = _vp(36.2341, 137.6112, 36.3001, 137.7099, zoom=11.5)
    covering = ViewportQuantizer().covering_viewport(original)
    assert covering.south <= original.south and covering.west <= original.west
    assert covering.north >= original.north and covering.east >= original.east
    assert covering.zoom == pytest.approx(11.5)

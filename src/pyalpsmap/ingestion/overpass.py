"""Convert Overpass ``elements`` into feature models.

Overpass returns a flat list of tagged nodes and ways.  Nodes carry
``lat``/``lon`` directly; ways carry either a ``geometry`` list
(``out geom``) or a ``center`` (``out center``).  Elements without usable
coordinates are skipped rather than failing the whole dataset.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pyalpsmap.exceptions import MapResponseError
from pyalpsmap.ingestion.normalize import parse_ele_tag, safe_float, safe_int, safe_str
from pyalpsmap.models.features import Coordinate, DatasetKind, Feature, Hut, Peak, River, Trail, WaterPoint

_logger = logging.getLogger(__name__)


def extract_elements(body: Any, *, url: str = "") -> list[dict[str, Any]]:
    """Return the ``elements`` array of an Overpass response.

    Raises
    ------
    MapResponseError
        If the body is not an object with an ``elements`` list.
    """
    if not isinstance(body, dict):
        raise MapResponseError(f"Overpass response is not an object: {type(body).__name__}", url=url)
    elements = body.get("elements")
    if not isinstance(elements, list):
        remark = body.get("remark")
        detail = f" ({remark})" if remark else ""
        raise MapResponseError(f"Overpass response has no elements array{detail}", url=url)
    return [element for element in elements if isinstance(element, dict)]


def _tags(element: Mapping[str, Any]) -> dict[str, Any]:
    tags = element.get("tags")
    return tags if isinstance(tags, dict) else {}


def _point(element: Mapping[str, Any]) -> tuple[float, float] | None:
    """``(lat, lon)`` of a node, or the centre of a way."""
    lat = safe_float(element.get("lat"))
    lon = safe_float(element.get("lon"))
    if lat is None or lon is None:
        center = element.get("center")
        if isinstance(center, dict):
            lat = safe_float(center.get("lat"))
            lon = safe_float(center.get("lon"))
    if lat is None or lon is None:
        return None
    return lat, lon


def _line(element: Mapping[str, Any]) -> list[Coordinate]:
    geometry = element.get("geometry")
    if not isinstance(geometry, list):
        return []
    coords: list[Coordinate] = []
    for vertex in geometry:
        if not isinstance(vertex, dict):
            continue
        lat = safe_float(vertex.get("lat"))
        lon = safe_float(vertex.get("lon"))
        if lat is not None and lon is not None:
            coords.append((lon, lat))
    return coords


def _name(tags: Mapping[str, Any]) -> str | None:
    return safe_str(tags.get("name")) or safe_str(tags.get("name:en")) or safe_str(tags.get("name:ja"))


def parse_peak(element: dict[str, Any]) -> Peak | None:
    point = _point(element)
    element_id = safe_int(element.get("id"))
    if point is None or element_id is None:
        return None
    tags = _tags(element)
    return Peak(
        id=element_id,
        name=_name(tags),
        lat=point[0],
        lon=point[1],
        elevation=parse_ele_tag(tags.get("ele")),
        raw=element,
    )


def parse_hut(element: dict[str, Any]) -> Hut | None:
    point = _point(element)
    element_id = safe_int(element.get("id"))
    if point is None or element_id is None:
        return None
    tags = _tags(element)
    return Hut(
        id=element_id,
        name=_name(tags),
        lat=point[0],
        lon=point[1],
        kind=safe_str(tags.get("tourism")) or "alpine_hut",
        raw=element,
    )


def parse_water_point(element: dict[str, Any]) -> WaterPoint | None:
    point = _point(element)
    element_id = safe_int(element.get("id"))
    if point is None or element_id is None:
        return None
    tags = _tags(element)
    kind = "drinking_water" if tags.get("amenity") == "drinking_water" else safe_str(tags.get("natural")) or "spring"
    return WaterPoint(
        id=element_id,
        name=_name(tags),
        lat=point[0],
        lon=point[1],
        kind=kind,
        raw=element,
    )


def parse_trail(element: dict[str, Any]) -> Trail | None:
    coords = _line(element)
    element_id = safe_int(element.get("id"))
    if len(coords) < 2 or element_id is None:
        return None
    tags = _tags(element)
    return Trail(
        id=element_id,
        name=_name(tags),
        coordinates=coords,
        sac_scale=safe_str(tags.get("sac_scale")),
        raw=element,
    )


def parse_river(element: dict[str, Any]) -> River | None:
    coords = _line(element)
    element_id = safe_int(element.get("id"))
    if len(coords) < 2 or element_id is None:
        return None
    tags = _tags(element)
    return River(
        id=element_id,
        name=_name(tags),
        coordinates=coords,
        waterway=safe_str(tags.get("waterway")) or "river",
        raw=element,
    )


_PARSERS: dict[DatasetKind, Callable[[dict[str, Any]], Feature | None]] = {
    DatasetKind.PEAKS: parse_peak,
    DatasetKind.HUTS: parse_hut,
    DatasetKind.WATER: parse_water_point,
    DatasetKind.TRAILS: parse_trail,
    DatasetKind.RIVERS: parse_river,
}


def parse_elements(kind: DatasetKind, body: Any, *, url: str = "") -> list[Feature]:
    """Parse an Overpass response body into features of one dataset class."""
    parser = _PARSERS[kind]
    features: list[Feature] = []
    skipped = 0
    for element in extract_elements(body, url=url):
        feature = parser(element)
        if feature is None:
            skipped += 1
            continue
        features.append(feature)
    if skipped:
        _logger.debug("Skipped %d %s elements without usable geometry", skipped, kind.value)
    return features

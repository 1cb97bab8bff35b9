"""Feature models for the viewport-scoped datasets."""

from __future__ import annotations

from enum import StrEnum

from pyalpsmap.models._base import MapBaseModel

Coordinate = tuple[float, float]
"""``(longitude, latitude)`` pair, GeoJSON order."""


class DatasetKind(StrEnum):
    """Independently fetched and rendered dataset classes."""

    PEAKS = "peaks"
    TRAILS = "trails"
    HUTS = "huts"
    WATER = "water"
    RIVERS = "rivers"


class PointFeature(MapBaseModel):
    """A tagged OSM node (or way centre)."""

    id: int
    name: str | None = None
    lat: float
    lon: float


class Peak(PointFeature):
    """Mountain summit.

    ``elevation`` is taken from the ``ele`` tag and is ``None`` when the
    tag is missing or unparseable.
    """

    elevation: float | None = None


class Hut(PointFeature):
    """Staffed alpine hut or unstaffed shelter (``tourism`` tag value in ``kind``)."""

    kind: str = "alpine_hut"


class WaterPoint(PointFeature):
    """Spring or drinking water tap."""

    kind: str = "spring"


class LineFeature(MapBaseModel):
    """A tagged OSM way with inline geometry."""

    id: int
    name: str | None = None
    coordinates: list[Coordinate]


class Trail(LineFeature):
    """Footpath or track; ``sac_scale`` carries the hiking difficulty grade."""

    sac_scale: str | None = None


class River(LineFeature):
    """River or stream centreline."""

    waterway: str = "river"


Feature = Peak | Hut | WaterPoint | Trail | River

"""Data models for map features and service responses."""

from pyalpsmap.models._base import MapBaseModel
from pyalpsmap.models.elevation import ElevationResult, ElevationSource
from pyalpsmap.models.features import (
    Coordinate,
    DatasetKind,
    Feature,
    Hut,
    LineFeature,
    Peak,
    PointFeature,
    River,
    Trail,
    WaterPoint,
)
from pyalpsmap.models.viewport import Viewport
from pyalpsmap.models.weather import WeatherConditions

__all__ = [
    "Coordinate",
    "DatasetKind",
    "ElevationResult",
    "ElevationSource",
    "Feature",
    "Hut",
    "LineFeature",
    "MapBaseModel",
    "Peak",
    "PointFeature",
    "River",
    "Trail",
    "Viewport",
    "WaterPoint",
    "WeatherConditions",
]

"""Viewport model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Viewport(BaseModel):
    """Geographic bounding box and zoom level currently visible on the map.

    An immutable snapshot produced by the renderer on every camera change.

    Parameters
    ----------
    south, west, north, east : float
        Edges in decimal degrees.
    zoom : float
        Map zoom level.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    south: float = Field(ge=-90.0, le=90.0)
    west: float
    north: float = Field(ge=-90.0, le=90.0)
    east: float
    zoom: float = Field(ge=0.0)

    @model_validator(mode="after")
    def _check_edges(self) -> Viewport:
        if self.south > self.north:
            raise ValueError(f"south ({self.south}) must not exceed north ({self.north})")
        if self.west > self.east:
            raise ValueError(f"west ({self.west}) must not exceed east ({self.east})")
        return self

    def bbox_string(self) -> str:
        """Bounding box in Overpass order: ``"south,west,north,east"``."""
        return f"{self.south},{self.west},{self.north},{self.east}"

    def contains(self, latitude: float, longitude: float) -> bool:
        """Whether a point lies inside the viewport (edges inclusive)."""
        return self.south <= latitude <= self.north and self.west <= longitude <= self.east

    @property
    def center(self) -> tuple[float, float]:
        """``(longitude, latitude)`` of the viewport centre."""
        return ((self.west + self.east) / 2.0, (self.south + self.north) / 2.0)

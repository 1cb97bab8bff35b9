"""Base model for map data parsed from remote services.

Every feature model inherits from :class:`MapBaseModel` which provides:

* ``frozen=True`` so parsed features can be shared between the renderer
  and the cache.
* ``extra="ignore"`` so unexpected keys in upstream payloads are dropped.
* A ``raw`` dict that captures the original element, excluded from
  serialisation so it never ends up in the persistent cache.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MapBaseModel(BaseModel):
    """Base for parsed map features and service responses."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True, repr=False)
    """Original upstream payload."""

"""Elevation lookup result."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, model_validator


class ElevationSource(StrEnum):
    PRIMARY_API = "primary_api"
    TERRAIN_QUERY = "terrain_query"
    NONE = "none"


class ElevationResult(BaseModel):
    """Resolved elevation in whole metres.

    ``value`` is ``None`` exactly when ``source`` is
    :attr:`ElevationSource.NONE`; callers must treat that as "unknown",
    never as zero.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    value: int | None = None
    source: ElevationSource = ElevationSource.NONE

    @model_validator(mode="after")
    def _value_matches_source(self) -> ElevationResult:
        if (self.value is None) != (self.source == ElevationSource.NONE):
            raise ValueError("value must be None if and only if source is NONE")
        return self

    @classmethod
    def unavailable(cls) -> ElevationResult:
        return cls(value=None, source=ElevationSource.NONE)

    @property
    def available(self) -> bool:
        return self.source != ElevationSource.NONE

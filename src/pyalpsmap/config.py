"""Client configuration for pyalpsmap."""

from __future__ import annotations

import dataclasses
import os
from datetime import timedelta
from enum import StrEnum
from typing import Any

from pyalpsmap._constants import (
    CACHE_SCHEMA_VERSION,
    DEFAULT_CENTER,
    DEFAULT_ZOOM,
    ELEVATION_URL,
    OVERPASS_URL,
    USER_AGENT,
    WEATHER_URL,
)
from pyalpsmap.exceptions import MapConfigError


class ElevationOrder(StrEnum):
    """Order in which elevation sources are consulted."""

    TERRAIN_FIRST = "terrain_first"
    API_FIRST = "api_first"


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(value)
    except ValueError as exc:
        raise MapConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class MapSyncConfig:
    """Client configuration.

    Parameters
    ----------
    overpass_url : str
        Overpass API interpreter endpoint used for all feature datasets.
    elevation_url : str
        Point elevation endpoint (GSI DEM service).
    weather_url : str
        Open-Meteo forecast endpoint used for current conditions.
    request_timeout : float
        Total per-request timeout in seconds.
    user_agent : str
        ``User-Agent`` header sent with every request.
    debounce_delay : float
        Quiet period in seconds after the last camera movement before a
        refresh cycle starts.
    min_zoom : float
        Refresh cycles only run when the viewport zoom is strictly above
        this value.
    min_refresh_interval : float
        Minimum seconds between two approved refresh cycles.  ``0``
        disables the cooldown.
    cache_max_entries : int
        Peaks cache entries allowed before capacity eviction kicks in.
    cache_retain_entries : int
        Entries kept after a capacity eviction (newest first).
    cache_expiry : timedelta
        Age after which a cache entry is never returned.
    cache_path : str or None
        JSON file backing the peaks cache.  ``None`` keeps the cache in
        memory for the lifetime of the client.
    cache_max_bytes : int or None
        Optional storage quota for the cache backend.
    cache_schema_version : str
        Embedded in every cache key; changing it orphans old entries.
    huts_enabled : bool
        Fetch the mountain huts dataset.
    rivers_enabled : bool
        Fetch the rivers dataset (heavy; off by default).
    elevation_order : ElevationOrder
        Which elevation source is authoritative.
    terrain_band : tuple of float
        Plausible terrain sample range (exclusive) for terrain-first lookups.
    fallback_terrain_band : tuple of float
        Tighter plausible range applied to the terrain fallback in
        api-first lookups.
    default_center : tuple of float
        ``(longitude, latitude)`` used when no viewport is known yet.
    default_zoom : float
        Zoom used with ``default_center``.
    """

    overpass_url: str = OVERPASS_URL
    elevation_url: str = ELEVATION_URL
    weather_url: str = WEATHER_URL
    request_timeout: float = 25.0
    user_agent: str = USER_AGENT
    debounce_delay: float = 1.0
    min_zoom: float = 8.0
    min_refresh_interval: float = 0.0
    cache_max_entries: int = 20
    cache_retain_entries: int = 15
    cache_expiry: timedelta = timedelta(days=7)
    cache_path: str | None = None
    cache_max_bytes: int | None = None
    cache_schema_version: str = CACHE_SCHEMA_VERSION
    huts_enabled: bool = True
    rivers_enabled: bool = False
    elevation_order: ElevationOrder = ElevationOrder.API_FIRST
    terrain_band: tuple[float, float] = (-500.0, 10000.0)
    fallback_terrain_band: tuple[float, float] = (-500.0, 4000.0)
    default_center: tuple[float, float] = DEFAULT_CENTER
    default_zoom: float = DEFAULT_ZOOM

    def __post_init__(self) -> None:
        if self.cache_max_entries < 1:
            raise MapConfigError("cache_max_entries must be at least 1")
        if not 0 <= self.cache_retain_entries <= self.cache_max_entries:
            raise MapConfigError(
                f"cache_retain_entries must be between 0 and cache_max_entries "
                f"({self.cache_max_entries}), got {self.cache_retain_entries}"
            )
        if self.cache_expiry <= timedelta(0):
            raise MapConfigError("cache_expiry must be positive")
        if self.debounce_delay < 0 or self.min_refresh_interval < 0:
            raise MapConfigError("debounce_delay and min_refresh_interval must not be negative")
        for name in ("terrain_band", "fallback_terrain_band"):
            low, high = getattr(self, name)
            if low >= high:
                raise MapConfigError(f"{name} lower bound must be below upper bound, got ({low}, {high})")
        # Accept plain strings for the enum (env vars, kwargs).
        if not isinstance(self.elevation_order, ElevationOrder):
            try:
                order = ElevationOrder(str(self.elevation_order).strip().lower())
            except ValueError as exc:
                raise MapConfigError(f"unknown elevation_order {self.elevation_order!r}") from exc
            object.__setattr__(self, "elevation_order", order)

    @classmethod
    def from_env(cls, **overrides: Any) -> MapSyncConfig:
        """Create configuration from environment variables.

        Reads optional ``ALPSMAP_*`` variables.  Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        MapSyncConfig
            Populated configuration.

        Raises
        ------
        MapConfigError
            If a numeric variable cannot be parsed or a value is out of range.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "ALPSMAP_OVERPASS_URL": "overpass_url",
            "ALPSMAP_ELEVATION_URL": "elevation_url",
            "ALPSMAP_WEATHER_URL": "weather_url",
            "ALPSMAP_USER_AGENT": "user_agent",
            "ALPSMAP_CACHE_PATH": "cache_path",
            "ALPSMAP_CACHE_SCHEMA_VERSION": "cache_schema_version",
            "ALPSMAP_ELEVATION_ORDER": "elevation_order",
        }
        _ENV_NUMBER_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "ALPSMAP_REQUEST_TIMEOUT": ("request_timeout", float),
            "ALPSMAP_DEBOUNCE_DELAY": ("debounce_delay", float),
            "ALPSMAP_MIN_ZOOM": ("min_zoom", float),
            "ALPSMAP_MIN_REFRESH_INTERVAL": ("min_refresh_interval", float),
            "ALPSMAP_CACHE_MAX_ENTRIES": ("cache_max_entries", int),
            "ALPSMAP_CACHE_RETAIN_ENTRIES": ("cache_retain_entries", int),
            "ALPSMAP_CACHE_MAX_BYTES": ("cache_max_bytes", int),
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        for env_key, (field_name, cast) in _ENV_NUMBER_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, cast)

        # cache_expiry is given in seconds in the environment
        expiry_env = env.get("ALPSMAP_CACHE_EXPIRY")
        if expiry_env is not None and "cache_expiry" not in overrides:
            seconds = _env_number("ALPSMAP_CACHE_EXPIRY", expiry_env, float)
            config_kwargs["cache_expiry"] = timedelta(seconds=seconds)

        if "huts_enabled" not in overrides:
            config_kwargs["huts_enabled"] = _env_bool(env.get("ALPSMAP_HUTS_ENABLED"), True)
        if "rivers_enabled" not in overrides:
            config_kwargs["rivers_enabled"] = _env_bool(env.get("ALPSMAP_RIVERS_ENABLED"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)

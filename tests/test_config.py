from __future__ import annotations

from datetime import timedelta

import pytest

from pyalpsmap.config import ElevationOrder, MapSyncConfig
from pyalpsmap.exceptions import MapConfigError


def test_defaults() -> None:
    config = MapSyncConfig()

    assert config.debounce_delay == 1.0
    assert config.min_zoom == 8.0
    assert config.cache_max_entries == 20
    assert config.cache_retain_entries == 15
    assert config.cache_expiry == timedelta(days=7)
    assert config.elevation_order is ElevationOrder.API_FIRST
    assert config.huts_enabled
    assert not config.rivers_enabled


def test_from_env_reads_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALPSMAP_DEBOUNCE_DELAY", "0.5")
    monkeypatch.setenv("ALPSMAP_CACHE_MAX_ENTRIES", "40")
    monkeypatch.setenv("ALPSMAP_CACHE_RETAIN_ENTRIES", "30")
    monkeypatch.setenv("ALPSMAP_CACHE_EXPIRY", "3600")
    monkeypatch.setenv("ALPSMAP_ELEVATION_ORDER", "Terrain_First")
    monkeypatch.setenv("ALPSMAP_RIVERS_ENABLED", "yes")
    monkeypatch.setenv("ALPSMAP_CACHE_PATH", "/tmp/alpsmap-peaks.json")

    config = MapSyncConfig.from_env()

    assert config.debounce_delay == 0.5
    assert config.cache_max_entries == 40
    assert config.cache_retain_entries == 30
    assert config.cache_expiry == timedelta(hours=1)
    assert config.elevation_order is ElevationOrder.TERRAIN_FIRST
    assert config.rivers_enabled
    assert config.cache_path == "/tmp/alpsmap-peaks.json"


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALPSMAP_MIN_ZOOM", "10")
    monkeypatch.setenv("ALPSMAP_HUTS_ENABLED", "0")

    config = MapSyncConfig.from_env(min_zoom=6.0, huts_enabled=True)

    assert config.min_zoom == 6.0
    assert config.huts_enabled


def test_from_env_bad_number(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALPSMAP_REQUEST_TIMEOUT", "soon")
    with pytest.raises(MapConfigError, match="ALPSMAP_REQUEST_TIMEOUT"):
        MapSyncConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"cache_max_entries": 0},
        {"cache_retain_entries": 21},
        {"cache_retain_entries": -1},
        {"cache_expiry": timedelta(0)},
        {"debounce_delay": -0.1},
        {"terrain_band": (100.0, 100.0)},
        {"elevation_order": "sideways"},
    ],
)
def test_invalid_values_rejected(kwargs: dict[str, object]) -> None:
    with pytest.raises(MapConfigError):
        MapSyncConfig(**kwargs)  # type: ignore[arg-type]

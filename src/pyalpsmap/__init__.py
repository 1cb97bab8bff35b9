"""pyalpsmap - Async viewport data sync and caching for mountain terrain maps."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyalpsmap")
except PackageNotFoundError:
    __version__ = "0+local"
from pyalpsmap.cache import CacheStore, JsonFileBackend, KeyValueBackend, MemoryBackend
from pyalpsmap.client import MapDataClient
from pyalpsmap.config import ElevationOrder, MapSyncConfig
from pyalpsmap.elevation import ElevationResolver, TerrainSampler
from pyalpsmap.exceptions import (
    CacheError,
    MapConfigError,
    MapResponseError,
    MapSyncError,
    MapTransportError,
    StorageFullError,
)
from pyalpsmap.gate import FetchGate, ScheduledTask
from pyalpsmap.models import (
    DatasetKind,
    ElevationResult,
    ElevationSource,
    Hut,
    Peak,
    River,
    Trail,
    Viewport,
    WaterPoint,
    WeatherConditions,
)
from pyalpsmap.quantize import ViewportQuantizer, quantize_viewport
from pyalpsmap.sync import DataSyncOrchestrator, DatasetOutcome, Renderer, SyncCycleReport

__all__ = [
    "__version__",
    "CacheError",
    "CacheStore",
    "DataSyncOrchestrator",
    "DatasetKind",
    "DatasetOutcome",
    "ElevationOrder",
    "ElevationResolver",
    "ElevationResult",
    "ElevationSource",
    "FetchGate",
    "Hut",
    "JsonFileBackend",
    "KeyValueBackend",
    "MapConfigError",
    "MapDataClient",
    "MapResponseError",
    "MapSyncConfig",
    "MapSyncError",
    "MapTransportError",
    "MemoryBackend",
    "Peak",
    "Renderer",
    "River",
    "ScheduledTask",
    "StorageFullError",
    "SyncCycleReport",
    "TerrainSampler",
    "Trail",
    "Viewport",
    "ViewportQuantizer",
    "WaterPoint",
    "WeatherConditions",
    "quantize_viewport",
]

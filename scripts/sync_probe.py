#!/usr/bin/env python3
"""Run one refresh cycle against the live services and print what came back.

Useful for checking Overpass query changes, the elevation API and the
weather endpoint without a map renderer.

Usage
-----
::

    python scripts/sync_probe.py                        # default Northern Alps view
    python scripts/sync_probe.py --bbox 36.25,137.60,36.36,137.70 --zoom 13
    python scripts/sync_probe.py --rivers --json

Configuration is read from ``ALPSMAP_*`` environment variables.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyalpsmap import DatasetKind, MapDataClient, MapSyncConfig, Viewport  # noqa: E402
from pyalpsmap.models.features import Feature  # noqa: E402
from pyalpsmap.quantize import ViewportQuantizer  # noqa: E402


class PrintingRenderer:
    """Renderer that keeps the last layer per dataset for reporting."""

    def __init__(self) -> None:
        self.layers: dict[DatasetKind, list[Feature]] = {}

    def remove_layer(self, kind: DatasetKind) -> None:
        self.layers.pop(kind, None)

    def add_layer(self, kind: DatasetKind, features: Sequence[Feature]) -> None:
        self.layers[kind] = list(features)


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _parse_bbox(text: str) -> tuple[float, float, float, float]:
    parts = [float(p) for p in text.split(",")]
    if len(parts) != 4:
        raise argparse.ArgumentTypeError("bbox must be south,west,north,east")
    return parts[0], parts[1], parts[2], parts[3]


def _cache_key(config: MapSyncConfig, viewport: Viewport) -> str:
    return ViewportQuantizer(version=config.cache_schema_version).quantize(viewport)


def _default_viewport(config: MapSyncConfig) -> tuple[float, float, float, float]:
    lon, lat = config.default_center
    return lat - 0.05, lon - 0.07, lat + 0.05, lon + 0.07


async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Run one pyalpsmap refresh cycle plus elevation and weather lookups.",
    )
    parser.add_argument("--bbox", type=_parse_bbox, help="south,west,north,east (default: around the default centre)")
    parser.add_argument("--zoom", type=float, default=None, help="Viewport zoom (default: config default_zoom)")
    parser.add_argument("--rivers", action="store_true", help="Also fetch the rivers dataset")
    parser.add_argument("--no-huts", action="store_true", help="Skip the huts dataset")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    overrides: dict[str, Any] = {}
    if args.rivers:
        overrides["rivers_enabled"] = True
    if args.no_huts:
        overrides["huts_enabled"] = False
    config = MapSyncConfig.from_env(**overrides)

    south, west, north, east = args.bbox or _default_viewport(config)
    viewport = Viewport(
        south=south,
        west=west,
        north=north,
        east=east,
        zoom=args.zoom if args.zoom is not None else config.default_zoom,
    )
    lon, lat = viewport.center

    renderer = PrintingRenderer()
    async with MapDataClient(config, renderer=renderer) as client:
        report = await client.refresh(viewport)
        elevation = await client.resolve_elevation(lon, lat)
        weather = await client.get_weather(lat, lon)

    if args.json_mode:
        result: dict[str, Any] = {
            "viewport": viewport.model_dump(),
            "cache_key": _cache_key(config, viewport),
            "outcomes": dict(report.outcomes) if report else None,
            "layers": {kind.value: [f.model_dump(mode="json") for f in feats] for kind, feats in renderer.layers.items()},
            "elevation": elevation.model_dump(mode="json"),
            "weather": weather.model_dump(mode="json") if weather else None,
        }
        print(json.dumps(result, indent=2, default=str, ensure_ascii=False))
        return

    out: list[str] = [_section("pyalpsmap sync_probe")]
    out.append(f"  bbox      : {viewport.bbox_string()} (zoom {viewport.zoom})")
    out.append(f"  cache key : {_cache_key(config, viewport)}")
    if report is None:
        out.append(f"  skipped   : zoom must be above {config.min_zoom}")
    else:
        out.append(_section(f"CYCLE {report.generation}"))
        for kind, outcome in report.outcomes.items():
            out.append(f"  {kind.value:<8}: {outcome.value:<10} {report.counts.get(kind, 0)} features")
        peaks = renderer.layers.get(DatasetKind.PEAKS, [])
        for peak in sorted(peaks, key=lambda p: -(getattr(p, "elevation", None) or 0))[:10]:
            out.append(f"    {getattr(peak, 'elevation', None) or '?':>6}  {peak.name or '(unnamed)'}")

    out.append(_section("POINT LOOKUPS"))
    out.append(f"  centre    : {lat:.5f}, {lon:.5f}")
    out.append(f"  elevation : {elevation.value} ({elevation.source.value})")
    if weather is None:
        out.append("  weather   : unavailable")
    else:
        out.append(f"  weather   : {weather.description}, {weather.temperature} °C, wind {weather.wind_speed} km/h")
    print("\n".join(out))


if __name__ == "__main__":
    asyncio.run(main())

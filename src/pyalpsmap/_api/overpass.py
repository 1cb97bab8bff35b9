"""Overpass API endpoint.

One Overpass QL query per dataset class, each scoped to the viewport's
bounding box and POSTed as the single url-encoded field ``data``.
"""

from __future__ import annotations

import logging

from pyalpsmap._transport import Transport
from pyalpsmap.config import MapSyncConfig
from pyalpsmap.ingestion.overpass import parse_elements
from pyalpsmap.models.features import DatasetKind, Feature
from pyalpsmap.models.viewport import Viewport

_logger = logging.getLogger(__name__)

_HEADER = "[out:json][timeout:{timeout}];"

# ``{bbox}`` is "south,west,north,east".
_BODIES: dict[DatasetKind, str] = {
    DatasetKind.PEAKS: """
(
  node["natural"="peak"]({bbox});
);
out body;
""",
    DatasetKind.TRAILS: """
(
  way["highway"~"^(path|footway|track)$"]({bbox});
);
out geom;
""",
    DatasetKind.HUTS: """
(
  node["tourism"~"^(alpine_hut|wilderness_hut)$"]({bbox});
  way["tourism"~"^(alpine_hut|wilderness_hut)$"]({bbox});
);
out center;
""",
    DatasetKind.WATER: """
(
  node["natural"="spring"]({bbox});
  node["amenity"="drinking_water"]({bbox});
);
out body;
""",
    DatasetKind.RIVERS: """
(
  way["waterway"~"^(river|stream)$"]({bbox});
);
out geom;
""",
}


def build_query(kind: DatasetKind, bbox: str, *, timeout: int = 25) -> str:
    """Build the Overpass QL query for *kind* within *bbox*."""
    return _HEADER.format(timeout=timeout) + _BODIES[kind].format(bbox=bbox)


async def fetch_dataset(
    config: MapSyncConfig,
    transport: Transport,
    kind: DatasetKind,
    viewport: Viewport,
) -> list[Feature]:
    """Fetch and parse one dataset class for the viewport.

    Raises
    ------
    MapTransportError
        Network failure, non-success status or undecodable body.
    MapResponseError
        Body decoded but has no ``elements`` array.
    """
    query = build_query(kind, viewport.bbox_string(), timeout=int(config.request_timeout))
    body = await transport.post_form(config.overpass_url, {"data": query})
    features = parse_elements(kind, body, url=config.overpass_url)
    _logger.debug("Fetched %d %s for bbox %s", len(features), kind.value, viewport.bbox_string())
    return features

"""Point elevation endpoint (GSI DEM service).

The service answers ``{"elevation": 3180.2, "hsrc": "5m（レーザ）"}`` for
covered points and ``{"elevation": "-----", "hsrc": "-----"}`` outside
DEM coverage.  Anything that is not a finite number is "unavailable".
"""

from __future__ import annotations

import logging
from typing import Any

from pyalpsmap._constants import ELEVATION_SENTINELS
from pyalpsmap._transport import Transport
from pyalpsmap.config import MapSyncConfig
from pyalpsmap.ingestion.normalize import safe_float

_logger = logging.getLogger(__name__)


def parse_elevation(body: Any) -> float | None:
    """Extract a numeric elevation from the response body, or ``None``."""
    if not isinstance(body, dict):
        return None
    value = body.get("elevation")
    if isinstance(value, str) and value.strip() in ELEVATION_SENTINELS:
        return None
    return safe_float(value)


async def fetch_api_elevation(
    config: MapSyncConfig,
    transport: Transport,
    longitude: float,
    latitude: float,
) -> float | None:
    """Query the elevation API for a point.

    Returns ``None`` when the service has no value for the point.
    Transport failures propagate as :class:`MapTransportError`.
    """
    body = await transport.get_json(
        config.elevation_url,
        {"lon": f"{longitude:.6f}", "lat": f"{latitude:.6f}", "outtype": "JSON"},
    )
    elevation = parse_elevation(body)
    if elevation is None:
        _logger.debug("Elevation API has no value for %.5f,%.5f: %r", longitude, latitude, body)
    return elevation

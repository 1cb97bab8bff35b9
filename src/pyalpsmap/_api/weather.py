"""Current weather endpoint (Open-Meteo forecast API)."""

from __future__ import annotations

from pyalpsmap._transport import Transport
from pyalpsmap.config import MapSyncConfig
from pyalpsmap.exceptions import MapResponseError
from pyalpsmap.models.weather import WeatherConditions

CURRENT_FIELDS: tuple[str, ...] = (
    "temperature_2m",
    "relative_humidity_2m",
    "surface_pressure",
    "wind_speed_10m",
    "wind_direction_10m",
    "cloud_cover",
    "precipitation",
    "weather_code",
)


async def fetch_current_weather(
    config: MapSyncConfig,
    transport: Transport,
    latitude: float,
    longitude: float,
) -> WeatherConditions:
    """Fetch current conditions for a point.

    Raises
    ------
    MapTransportError
        Network failure, non-success status or undecodable body.
    MapResponseError
        Body has no ``current`` block.
    """
    body = await transport.get_json(
        config.weather_url,
        {
            "latitude": f"{latitude:.4f}",
            "longitude": f"{longitude:.4f}",
            "current": ",".join(CURRENT_FIELDS),
            "timezone": "auto",
        },
    )
    if not isinstance(body, dict) or not isinstance(body.get("current"), dict):
        raise MapResponseError("Weather response has no current block", url=config.weather_url)
    return WeatherConditions.model_validate(body)

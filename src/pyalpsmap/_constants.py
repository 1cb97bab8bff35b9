"""Internal constants shared across the library."""

OVERPASS_URL = "https://overpass-api.de/api/interpreter"
ELEVATION_URL = "https://cyberjapandata2.gsi.go.jp/general/dem/scripts/getelevation.php"
WEATHER_URL = "https://api.open-meteo.com/v1/forecast"
USER_AGENT = "pyalpsmap/0.1 (+https://github.com/pyalpsmap/pyalpsmap)"

#: Bumping this invalidates every cached entry without a migration step.
CACHE_SCHEMA_VERSION = "1.0"
PEAKS_CACHE_PREFIX = "peaks"

#: Grid resolution used for cache keys, in decimal places (0.01° ≈ 1.1 km).
QUANTIZE_PRECISION = 2

#: Sentinel returned by the GSI elevation service when no DEM covers the point.
ELEVATION_SENTINELS: frozenset[str] = frozenset({"-----", ""})

# Northern Alps, Nagano/Toyama border.
DEFAULT_CENTER: tuple[float, float] = (137.9643, 36.2308)
DEFAULT_ZOOM = 12.0

# ------------------------------------------------------------------
# WMO weather interpretation codes (Open-Meteo ``weather_code``)
# ------------------------------------------------------------------

WEATHER_CODES: dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Dense freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snow fall",
    73: "Moderate snow fall",
    75: "Heavy snow fall",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}


def describe_weather_code(code: int | None) -> str:
    """Map a WMO weather code to a short description.

    Unmapped or missing codes yield ``"Unknown"``.
    """
    if code is None:
        return "Unknown"
    return WEATHER_CODES.get(int(code), "Unknown")

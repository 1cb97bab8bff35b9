"""Current weather conditions model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from pyalpsmap._constants import describe_weather_code
from pyalpsmap.ingestion.normalize import safe_float, safe_int
from pyalpsmap.models._base import MapBaseModel


class WeatherConditions(MapBaseModel):
    """Current conditions at a point.

    Numeric fields are ``None`` when the value is absent or
    unparseable from the API response.

    Parameters
    ----------
    temperature : float or None
        Air temperature at 2 m in °C.
    humidity : float or None
        Relative humidity at 2 m in %.
    pressure : float or None
        Surface pressure in hPa.
    wind_speed : float or None
        Wind speed at 10 m in km/h.
    wind_direction : float or None
        Wind direction at 10 m in degrees.
    cloud_cover : float or None
        Total cloud cover in %.
    precipitation : float or None
        Precipitation of the preceding hour in mm.
    weather_code : int or None
        WMO weather interpretation code.
    description : str
        Human readable description of ``weather_code``.
    raw : dict
        Full API response dict.
    """

    temperature: float | None = Field(default=None, validation_alias=AliasChoices("temperature", "temperature_2m"))
    humidity: float | None = Field(
        default=None,
        validation_alias=AliasChoices("humidity", "relative_humidity_2m"),
    )
    pressure: float | None = Field(default=None, validation_alias=AliasChoices("pressure", "surface_pressure"))
    wind_speed: float | None = Field(default=None, validation_alias=AliasChoices("wind_speed", "wind_speed_10m"))
    wind_direction: float | None = Field(
        default=None,
        validation_alias=AliasChoices("wind_direction", "wind_direction_10m"),
    )
    cloud_cover: float | None = None
    precipitation: float | None = None
    weather_code: int | None = None
    description: str = "Unknown"

    @model_validator(mode="before")
    @classmethod
    def _unwrap_current(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        current = values.get("current")
        merged = dict(current) if isinstance(current, dict) else dict(values)
        merged.setdefault("raw", values)
        if "description" not in merged:
            merged["description"] = describe_weather_code(safe_int(merged.get("weather_code")))
        return merged

    @field_validator(
        "temperature",
        "humidity",
        "pressure",
        "wind_speed",
        "wind_direction",
        "cloud_cover",
        "precipitation",
        mode="before",
    )
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("weather_code", mode="before")
    @classmethod
    def _coerce_code(cls, value: Any) -> int | None:
        return safe_int(value)

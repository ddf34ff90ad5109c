"""Boundary schemas for upstream provider payloads.

Each provider response is validated here so that schema drift upstream never
leaks into the rest of the system. Missing numeric fields default to ``0`` and
missing text fields to a placeholder.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNKNOWN_LOCATION = "Unknown Location"
DEFAULT_UNIT = "µg/m³"


def _zero_if_missing(value: Any) -> Any:
    return 0.0 if value is None else value


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive timestamps as UTC and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore")


# Ground-sensor network (OpenAQ v2 ``/locations``)


class OpenAQCoordinates(_Lenient):
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class OpenAQParameter(_Lenient):
    parameter: str
    last_value: float = Field(default=0.0, alias="lastValue")
    unit: str = DEFAULT_UNIT
    last_updated: Optional[datetime] = Field(default=None, alias="lastUpdated")

    @field_validator("last_value", mode="before")
    @classmethod
    def coerce_missing_value(cls, value: Any) -> Any:
        return _zero_if_missing(value)

    @field_validator("unit", mode="before")
    @classmethod
    def default_unit(cls, value: Any) -> Any:
        return value or DEFAULT_UNIT

    @field_validator("last_updated")
    @classmethod
    def normalize_last_updated(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class OpenAQLocation(_Lenient):
    id: Any = None
    name: str = UNKNOWN_LOCATION
    locality: Optional[str] = None
    country: Optional[str] = None
    coordinates: OpenAQCoordinates = Field(default_factory=OpenAQCoordinates)
    # validated one entry at a time so a bad parameter only drops itself
    parameters: List[Any] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def default_name(cls, value: Any) -> Any:
        return value or UNKNOWN_LOCATION

    @field_validator("coordinates", mode="before")
    @classmethod
    def default_coordinates(cls, value: Any) -> Any:
        return value or {}

    @field_validator("parameters", mode="before")
    @classmethod
    def default_parameters(cls, value: Any) -> Any:
        return value or []


class OpenAQLocationsResponse(_Lenient):
    results: List[Any] = Field(default_factory=list)

    @field_validator("results", mode="before")
    @classmethod
    def default_results(cls, value: Any) -> Any:
        return value or []


# Satellite / reanalysis lookup


class SatelliteObservation(_Lenient):
    no2: Optional[float] = None
    o3: Optional[float] = None
    co: Optional[float] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source: str = "TEMPO"

    @field_validator("timestamp", mode="before")
    @classmethod
    def default_timestamp(cls, value: Any) -> Any:
        return value or datetime.now(timezone.utc)

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        return as_utc(value)


# Weather-service pollution endpoints (OpenWeatherMap ``/air_pollution``)


class PollutionComponents(_Lenient):
    co: float = 0.0
    no: float = 0.0
    no2: float = 0.0
    o3: float = 0.0
    so2: float = 0.0
    pm2_5: float = 0.0
    pm10: float = 0.0
    nh3: float = 0.0

    @field_validator(
        "co", "no", "no2", "o3", "so2", "pm2_5", "pm10", "nh3", mode="before"
    )
    @classmethod
    def coerce_missing_components(cls, value: Any) -> Any:
        return _zero_if_missing(value)


class PollutionMain(_Lenient):
    aqi: int = 1


class PollutionEntry(_Lenient):
    dt: int
    main: PollutionMain = Field(default_factory=PollutionMain)
    components: PollutionComponents = Field(default_factory=PollutionComponents)

    @field_validator("main", "components", mode="before")
    @classmethod
    def default_section(cls, value: Any) -> Any:
        return value or {}

    @property
    def observed_at(self) -> datetime:
        return datetime.fromtimestamp(self.dt, tz=timezone.utc)


class PollutionResponse(_Lenient):
    entries: List[Any] = Field(default_factory=list, alias="list")

    @field_validator("entries", mode="before")
    @classmethod
    def default_entries(cls, value: Any) -> Any:
        return value or []


# Generative text backend (Gemini ``generateContent``)


class GeminiPart(_Lenient):
    text: Optional[str] = None


class GeminiContent(_Lenient):
    parts: List[GeminiPart] = Field(default_factory=list)


class GeminiCandidate(_Lenient):
    content: Optional[GeminiContent] = None


class GeminiResponse(_Lenient):
    candidates: List[GeminiCandidate] = Field(default_factory=list)

    def first_text(self) -> Optional[str]:
        for candidate in self.candidates:
            if candidate.content is None:
                continue
            for part in candidate.content.parts:
                if part.text and part.text.strip():
                    return part.text.strip()
        return None

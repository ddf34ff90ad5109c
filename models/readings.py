"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from services.aqi import compute_aqi


class Pollutant(str, Enum):
    """Pollutant parameters reported by upstream providers."""

    pm25 = "pm25"
    pm10 = "pm10"
    no2 = "no2"
    o3 = "o3"
    so2 = "so2"
    co = "co"
    no = "no"
    nh3 = "nh3"


TRACKED_POLLUTANTS: Tuple[Pollutant, ...] = (Pollutant.pm25, Pollutant.no2, Pollutant.o3)


class SourceId(str, Enum):
    """Measurement modality a provider reading came from."""

    ground_sensor = "ground_sensor"
    satellite = "satellite"
    reanalysis = "reanalysis"


class Tone(str, Enum):
    calm = "calm"
    warning = "warning"
    urgent = "urgent"
    positive = "positive"


@dataclass(frozen=True, slots=True)
class ProviderReading:
    """A single raw measurement as returned by one provider."""

    parameter: Pollutant
    value: float
    unit: str
    observed_at: datetime
    source_id: SourceId


@dataclass(frozen=True, slots=True)
class GeoPoint:
    lat: float
    lon: float


@dataclass(frozen=True, slots=True, kw_only=True)
class CanonicalReading:
    """Source-agnostic pollutant snapshot for one location.

    ``aqi`` is not accepted by the constructor; it is derived from the three
    pollutant values every time an instance is created, including through
    ``dataclasses.replace``.
    """

    pm25: float
    no2: float
    o3: float
    timestamp: datetime
    location_label: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    aqi: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "aqi", compute_aqi(self.pm25, self.no2, self.o3))

    @property
    def coordinates(self) -> Optional[GeoPoint]:
        if self.latitude is None or self.longitude is None:
            return None
        return GeoPoint(lat=self.latitude, lon=self.longitude)

    def is_empty(self) -> bool:
        return self.pm25 == 0 and self.no2 == 0 and self.o3 == 0


@dataclass(frozen=True, slots=True, kw_only=True)
class ForecastPoint(CanonicalReading):
    """A forecast step; later steps carry lower confidence."""

    confidence: float


@dataclass(frozen=True, slots=True)
class AdvisoryResult:
    reply_text: str
    tone: Tone
    confidence: float
    sources: Tuple[str, ...]
    highlight_area: Optional[GeoPoint] = None


@dataclass(frozen=True, slots=True)
class DataSourceDescriptor:
    name: str
    confidence: float
    description: str


@dataclass(frozen=True, slots=True)
class GroundSite:
    """A ground monitoring location and the raw readings it reported."""

    location_id: str
    name: str
    latitude: float
    longitude: float
    readings: Tuple[ProviderReading, ...] = ()

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from datastore.reading_cache import ReadingCache
from models.readings import (
    CanonicalReading,
    GroundSite,
    Pollutant,
    ProviderReading,
    SourceId,
)
from providers.base import ProviderUnavailable

OBSERVED_AT = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def reading_of(
    parameter: Pollutant,
    value: float,
    source: SourceId,
    unit: str = "µg/m³",
    observed_at: datetime = OBSERVED_AT,
) -> ProviderReading:
    return ProviderReading(
        parameter=parameter,
        value=value,
        unit=unit,
        observed_at=observed_at,
        source_id=source,
    )


def make_site(
    name: str,
    lat: float = 9.93,
    lon: float = 76.26,
    pm25: Optional[float] = None,
    no2: Optional[float] = None,
    o3: Optional[float] = None,
) -> GroundSite:
    readings = [
        reading_of(pollutant, value, SourceId.ground_sensor)
        for pollutant, value in (
            (Pollutant.pm25, pm25),
            (Pollutant.no2, no2),
            (Pollutant.o3, o3),
        )
        if value is not None
    ]
    return GroundSite(
        location_id=name.lower().replace(" ", "-"),
        name=name,
        latitude=lat,
        longitude=lon,
        readings=tuple(readings),
    )


def make_reading(
    pm25: float = 20.0,
    no2: float = 10.0,
    o3: float = 30.0,
    label: str = "Test Site",
    lat: Optional[float] = 9.93,
    lon: Optional[float] = 76.26,
) -> CanonicalReading:
    return CanonicalReading(
        pm25=pm25,
        no2=no2,
        o3=o3,
        timestamp=OBSERVED_AT,
        location_label=label,
        latitude=lat,
        longitude=lon,
    )


class StubGround:
    def __init__(
        self,
        sites: Sequence[GroundSite] = (),
        error: Optional[Exception] = None,
    ) -> None:
        self.sites = list(sites)
        self.error = error
        self.calls: List[Tuple[float, float, float, int]] = []

    async def fetch_sites(
        self, lat: float, lon: float, radius_km: float, limit: int
    ) -> List[GroundSite]:
        self.calls.append((lat, lon, radius_km, limit))
        if self.error is not None:
            raise self.error
        return list(self.sites)


class StubSatellite:
    """Answers per site latitude; an exception value is raised for that site."""

    def __init__(
        self,
        by_latitude: Optional[Dict[float, object]] = None,
        default: object = None,
    ) -> None:
        self.by_latitude = by_latitude or {}
        self.default = default
        self.calls: List[Tuple[float, float]] = []

    async def lookup(self, lat: float, lon: float) -> Optional[List[ProviderReading]]:
        self.calls.append((lat, lon))
        result = self.by_latitude.get(lat, self.default)
        if isinstance(result, Exception):
            raise result
        return result  # type: ignore[return-value]


class StubPollution:
    def __init__(
        self,
        current: Optional[List[ProviderReading]] = None,
        feed: Optional[List[List[ProviderReading]]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.current = current or []
        self.feed = feed or []
        self.error = error

    async def fetch_current(self, lat: float, lon: float) -> List[ProviderReading]:
        if self.error is not None:
            raise self.error
        return list(self.current)

    async def fetch_forecast(
        self, lat: float, lon: float, steps: int
    ) -> List[List[ProviderReading]]:
        if self.error is not None:
            raise self.error
        return list(self.feed[:steps])


class StubGenerator:
    def __init__(self, text: Optional[str] = None, error: Optional[Exception] = None) -> None:
        self.text = text
        self.error = error
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> Optional[str]:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text


def pollution_step(
    hour: int, pm25: float, no2: float, o3: float
) -> List[ProviderReading]:
    when = OBSERVED_AT + timedelta(hours=hour)
    return [
        reading_of(Pollutant.pm25, pm25, SourceId.reanalysis, observed_at=when),
        reading_of(Pollutant.no2, no2, SourceId.reanalysis, observed_at=when),
        reading_of(Pollutant.o3, o3, SourceId.reanalysis, observed_at=when),
    ]


def unavailable(provider: str = "stub") -> ProviderUnavailable:
    return ProviderUnavailable(provider, "status 503")


@pytest.fixture()
def cache() -> ReadingCache:
    return ReadingCache()

"""Deterministic synthetic data used when the ground-sensor network is down."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from models.readings import (
    CanonicalReading,
    GroundSite,
    Pollutant,
    ProviderReading,
    SourceId,
)

DEFAULT_BASELINE_PM25 = 45.0
DEFAULT_BASELINE_NO2 = 25.0
DEFAULT_BASELINE_O3 = 55.0

_JITTER = 0.15


@dataclass(frozen=True, slots=True)
class _SyntheticSite:
    name: str
    lat_offset: float
    lon_offset: float
    pm25_factor: float


# pm25 factors relative to the central site
_SITES: Tuple[_SyntheticSite, ...] = (
    _SyntheticSite("Central Station", 0.0, 0.0, 1.0),
    _SyntheticSite("Industrial Area", 0.02, 0.01, 85 / 45),
    _SyntheticSite("Residential Zone", -0.01, 0.02, 35 / 45),
    _SyntheticSite("Highway Junction", 0.03, -0.02, 65 / 45),
    _SyntheticSite("Green Park", -0.02, -0.01, 25 / 45),
)


def _stable_ratio(seed: str) -> float:
    raw = hashlib.sha256(seed.encode("utf-8")).hexdigest()[:8]
    return int(raw, 16) / 0xFFFFFFFF


def _jittered(value: float, seed: str) -> float:
    return value * (1.0 + (_stable_ratio(seed) * 2.0 - 1.0) * _JITTER)


def baseline_reading(
    lat: float,
    lon: float,
    location_label: str,
    timestamp: Optional[datetime] = None,
) -> CanonicalReading:
    return CanonicalReading(
        pm25=DEFAULT_BASELINE_PM25,
        no2=DEFAULT_BASELINE_NO2,
        o3=DEFAULT_BASELINE_O3,
        timestamp=timestamp or datetime.now(timezone.utc),
        location_label=location_label,
        latitude=lat,
        longitude=lon,
    )


def synthetic_sites(
    lat: float,
    lon: float,
    seed_reading: Optional[CanonicalReading] = None,
    observed_at: Optional[datetime] = None,
) -> List[GroundSite]:
    """Build a fixed ring of sites around ``(lat, lon)``.

    Values scale with ``seed_reading`` (the last known reading) when one is
    given, otherwise with the default baseline. The same inputs always yield
    the same sites.
    """
    if seed_reading is None or seed_reading.is_empty():
        base_pm25, base_no2, base_o3 = (
            DEFAULT_BASELINE_PM25,
            DEFAULT_BASELINE_NO2,
            DEFAULT_BASELINE_O3,
        )
    else:
        base_pm25, base_no2, base_o3 = seed_reading.pm25, seed_reading.no2, seed_reading.o3

    when = observed_at or datetime.now(timezone.utc)
    sites: List[GroundSite] = []
    for index, site in enumerate(_SITES):
        seed = f"{lat:.4f}:{lon:.4f}:{site.name}"
        values = (
            (Pollutant.pm25, _jittered(base_pm25 * site.pm25_factor, seed + ":pm25")),
            (Pollutant.no2, _jittered(base_no2, seed + ":no2")),
            (Pollutant.o3, _jittered(base_o3, seed + ":o3")),
        )
        readings = tuple(
            ProviderReading(
                parameter=pollutant,
                value=round(value, 1),
                unit="µg/m³",
                observed_at=when,
                source_id=SourceId.ground_sensor,
            )
            for pollutant, value in values
        )
        sites.append(
            GroundSite(
                location_id=f"synthetic-{1000 + index}",
                name=site.name,
                latitude=lat + site.lat_offset,
                longitude=lon + site.lon_offset,
                readings=readings,
            )
        )
    return sites

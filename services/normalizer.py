"""Normalization of heterogeneous provider readings into canonical readings."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

from models.readings import (
    TRACKED_POLLUTANTS,
    CanonicalReading,
    Pollutant,
    ProviderReading,
    SourceId,
)

logger = logging.getLogger(__name__)

_PARAMETER_ALIASES: Dict[str, Pollutant] = {
    "pm25": Pollutant.pm25,
    "pm2.5": Pollutant.pm25,
    "pm2_5": Pollutant.pm25,
    "pm10": Pollutant.pm10,
    "no2": Pollutant.no2,
    "o3": Pollutant.o3,
    "so2": Pollutant.so2,
    "co": Pollutant.co,
    "no": Pollutant.no,
    "nh3": Pollutant.nh3,
}

# µg/m³ per ppb at 25 °C and 1 atm
_PPB_TO_UG_M3: Dict[Pollutant, float] = {
    Pollutant.no2: 1.88,
    Pollutant.o3: 1.96,
    Pollutant.so2: 2.62,
    Pollutant.no: 1.23,
}

PriorityOrder = Sequence[SourceId]
SourcePriority = Union[PriorityOrder, Mapping[Pollutant, PriorityOrder]]

DEFAULT_SOURCE_PRIORITY: Dict[Pollutant, Tuple[SourceId, ...]] = {
    Pollutant.pm25: (SourceId.ground_sensor, SourceId.reanalysis, SourceId.satellite),
    Pollutant.no2: (SourceId.satellite, SourceId.reanalysis, SourceId.ground_sensor),
    Pollutant.o3: (SourceId.satellite, SourceId.reanalysis, SourceId.ground_sensor),
}


def parse_parameter(name: str) -> Optional[Pollutant]:
    """Resolve a provider parameter name, returning ``None`` for untracked ones."""
    return _PARAMETER_ALIASES.get(name.strip().lower().replace(" ", ""))


def to_micrograms(parameter: Pollutant, value: float, unit: str) -> float:
    """Convert a concentration into µg/m³ where a conversion is known."""
    unit_key = unit.strip().lower()
    factor = _PPB_TO_UG_M3.get(parameter)
    if factor is None:
        return value
    if unit_key == "ppb":
        return value * factor
    if unit_key == "ppm":
        return value * factor * 1000.0
    return value


def _clean(value: float) -> float:
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


@dataclass
class PollutantNormalizer:
    """Select one value per tracked pollutant by configurable source priority."""

    source_priority: SourcePriority = field(
        default_factory=lambda: dict(DEFAULT_SOURCE_PRIORITY)
    )

    def priority_for(
        self, pollutant: Pollutant, source_priority: Optional[SourcePriority] = None
    ) -> Tuple[SourceId, ...]:
        priority = self.source_priority if source_priority is None else source_priority
        if isinstance(priority, Mapping):
            order = priority.get(pollutant)
            if order is None:
                return tuple(SourceId)
            return tuple(order)
        return tuple(priority)

    def normalize(
        self,
        provider_readings: Iterable[ProviderReading],
        source_priority: Optional[SourcePriority] = None,
        *,
        location_label: str,
        timestamp: Optional[datetime] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> CanonicalReading:
        by_source: Dict[Tuple[Pollutant, SourceId], float] = {}
        newest: Optional[datetime] = None

        for reading in provider_readings:
            if reading.parameter not in TRACKED_POLLUTANTS:
                continue
            key = (reading.parameter, reading.source_id)
            if key in by_source:
                continue
            value = to_micrograms(reading.parameter, reading.value, reading.unit)
            by_source[key] = _clean(value)
            if newest is None or reading.observed_at > newest:
                newest = reading.observed_at

        values: Dict[Pollutant, float] = {}
        for pollutant in TRACKED_POLLUTANTS:
            values[pollutant] = 0.0
            for source in self.priority_for(pollutant, source_priority):
                candidate = by_source.get((pollutant, source))
                if candidate is not None:
                    values[pollutant] = candidate
                    break
            else:
                logger.debug(
                    "No source reported pollutant, defaulting to zero",
                    extra={"location": location_label, "reason": pollutant.value},
                )

        return CanonicalReading(
            pm25=values[Pollutant.pm25],
            no2=values[Pollutant.no2],
            o3=values[Pollutant.o3],
            timestamp=timestamp or newest or datetime.now(timezone.utc),
            location_label=location_label,
            latitude=latitude,
            longitude=longitude,
        )

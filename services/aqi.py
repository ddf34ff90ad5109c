"""Air-quality index computation.

The index is a simplified ratio-to-ceiling scheme: every pollutant is scaled
against a reference concentration so that a value at its ceiling maps to 50,
and the worst pollutant sets the overall index.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

PM25_CEILING = 15.0
NO2_CEILING = 40.0
O3_CEILING = 100.0
SUB_INDEX_SCALE = 50.0

WHO_PM25_LIMIT = PM25_CEILING


def sub_index(value: float, ceiling: float) -> float:
    return (value / ceiling) * SUB_INDEX_SCALE


def compute_aqi(pm25: float, no2: float, o3: float) -> int:
    """Return the overall index as the rounded maximum of the sub-indices.

    Negative inputs are not rejected; they simply produce a non-positive
    sub-index.
    """
    worst = max(
        sub_index(pm25, PM25_CEILING),
        sub_index(no2, NO2_CEILING),
        sub_index(o3, O3_CEILING),
    )
    # half-up rounding
    return int(math.floor(worst + 0.5))


@dataclass(frozen=True, slots=True)
class AqiLevel:
    level: str
    color: str
    advice: str


_LEVELS = (
    (50, AqiLevel("Good", "#10b981", "Air quality is satisfactory")),
    (100, AqiLevel("Moderate", "#f59e0b", "Sensitive groups should limit outdoor activity")),
    (
        150,
        AqiLevel(
            "Unhealthy for Sensitive Groups",
            "#f97316",
            "Reduce prolonged outdoor exertion",
        ),
    ),
    (200, AqiLevel("Unhealthy", "#ef4444", "Everyone should reduce outdoor activity")),
)
_WORST_LEVEL = AqiLevel("Very Unhealthy", "#991b1b", "Avoid all outdoor activity")


def aqi_level(aqi: int) -> AqiLevel:
    """Map an index value onto its display band."""
    for upper, level in _LEVELS:
        if aqi <= upper:
            return level
    return _WORST_LEVEL

"""Short-horizon forecast generation."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence

from models.readings import CanonicalReading, ForecastPoint

logger = logging.getLogger(__name__)

FEED_CONFIDENCE_START = 0.9
FALLBACK_CONFIDENCE_START = 0.85
CONFIDENCE_DECAY = 0.08

FALLBACK_AMPLITUDE = 15.0
FALLBACK_PHASE_STEP = 0.5

PM25_SCALE, NO2_SCALE, O3_SCALE = 1.0, 0.3, 0.5
PM25_FLOOR, NO2_FLOOR, O3_FLOOR = 10.0, 5.0, 20.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _confidence(start: float, step_index: int) -> float:
    return min(1.0, max(0.0, start - step_index * CONFIDENCE_DECAY))


class ForecastGenerator:
    """Turns a provider feed, or a single base reading, into forecast points."""

    def __init__(
        self,
        horizon_steps: int = 6,
        step_interval_hours: float = 1.0,
        amplitude: float = FALLBACK_AMPLITUDE,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.horizon_steps = horizon_steps
        self.step_interval_hours = step_interval_hours
        self.amplitude = amplitude
        self._clock = clock

    def forecast(
        self,
        base_reading: CanonicalReading,
        feed: Optional[Sequence[CanonicalReading]] = None,
        horizon_steps: Optional[int] = None,
        step_interval_hours: Optional[float] = None,
    ) -> List[ForecastPoint]:
        steps = horizon_steps if horizon_steps is not None else self.horizon_steps
        interval = (
            step_interval_hours
            if step_interval_hours is not None
            else self.step_interval_hours
        )

        if feed and self._feed_usable(feed, steps):
            points = self.from_feed(feed, steps)
            logger.debug(
                "Forecast mapped from provider feed",
                extra={"location": base_reading.location_label, "step_count": len(points)},
            )
            return points

        if feed:
            logger.info(
                "Provider forecast feed unusable, synthesizing",
                extra={"location": base_reading.location_label, "reason": "short_or_unordered"},
            )
        return self.synthesize(base_reading, steps, interval)

    def from_feed(
        self, feed: Sequence[CanonicalReading], horizon_steps: int
    ) -> List[ForecastPoint]:
        return [
            ForecastPoint(
                pm25=step.pm25,
                no2=step.no2,
                o3=step.o3,
                timestamp=step.timestamp,
                location_label=step.location_label,
                latitude=step.latitude,
                longitude=step.longitude,
                confidence=_confidence(FEED_CONFIDENCE_START, index),
            )
            for index, step in enumerate(feed[:horizon_steps])
        ]

    def synthesize(
        self,
        base_reading: CanonicalReading,
        horizon_steps: int,
        step_interval_hours: float,
    ) -> List[ForecastPoint]:
        """Deterministic sinusoidal variation around the base reading."""
        start = self._clock()
        points: List[ForecastPoint] = []
        for index in range(horizon_steps):
            variation = math.sin(index * FALLBACK_PHASE_STEP) * self.amplitude
            points.append(
                ForecastPoint(
                    pm25=max(PM25_FLOOR, base_reading.pm25 + variation * PM25_SCALE),
                    no2=max(NO2_FLOOR, base_reading.no2 + variation * NO2_SCALE),
                    o3=max(O3_FLOOR, base_reading.o3 + variation * O3_SCALE),
                    timestamp=start + timedelta(hours=index * step_interval_hours),
                    location_label=base_reading.location_label,
                    latitude=base_reading.latitude,
                    longitude=base_reading.longitude,
                    confidence=_confidence(FALLBACK_CONFIDENCE_START, index),
                )
            )
        return points

    @staticmethod
    def _feed_usable(feed: Sequence[CanonicalReading], horizon_steps: int) -> bool:
        if len(feed) < horizon_steps:
            return False
        window = feed[:horizon_steps]
        return all(
            later.timestamp > earlier.timestamp
            for earlier, later in zip(window, window[1:])
        )

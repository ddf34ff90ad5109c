"""Multi-provider aggregation of current readings and forecasts."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Optional, Sequence

from datastore.reading_cache import ReadingCache, distance_km
from models.readings import CanonicalReading, ForecastPoint, GroundSite, ProviderReading
from providers.base import (
    GroundSensorProvider,
    PollutionForecastProvider,
    ProviderUnavailable,
    SatelliteProvider,
)
from services.fallback import baseline_reading, synthetic_sites
from services.forecast import ForecastGenerator
from services.normalizer import PollutantNormalizer, SourcePriority

logger = logging.getLogger(__name__)

NEARBY_KM = 10.0


class SourceAggregator:
    """Fetches from every provider concurrently and degrades per provider.

    No provider failure is surfaced to the caller: a missing ground network is
    replaced by deterministic synthetic sites, a missing satellite lookup leaves
    the ground-only values in place, and a missing forecast feed is replaced by
    the synthetic forecast.
    """

    def __init__(
        self,
        ground: Optional[GroundSensorProvider],
        satellite: Optional[SatelliteProvider],
        pollution: Optional[PollutionForecastProvider],
        cache: ReadingCache,
        normalizer: Optional[PollutantNormalizer] = None,
        forecaster: Optional[ForecastGenerator] = None,
        source_priority: Optional[SourcePriority] = None,
        max_sites: int = 10,
    ) -> None:
        self.ground = ground
        self.satellite = satellite
        self.pollution = pollution
        self.cache = cache
        self.normalizer = normalizer or PollutantNormalizer()
        self.forecaster = forecaster or ForecastGenerator()
        self.source_priority = source_priority
        self.max_sites = max_sites

    async def fetch_current(
        self, lat: float, lon: float, radius_km: float
    ) -> List[CanonicalReading]:
        start_time = time.perf_counter()
        sites = (await self._ground_sites(lat, lon, radius_km))[: self.max_sites]

        enrichments = await asyncio.gather(
            *(self._enrich(site) for site in sites), return_exceptions=True
        )

        readings: List[CanonicalReading] = []
        for site, extra in zip(sites, enrichments):
            if isinstance(extra, BaseException):
                logger.warning(
                    "Enrichment failed, using ground-only values",
                    extra={"location": site.name, "reason": type(extra).__name__},
                )
                extra = ()
            reading = self.normalizer.normalize(
                [*site.readings, *extra],
                self.source_priority,
                location_label=site.name,
                latitude=site.latitude,
                longitude=site.longitude,
            )
            if reading.is_empty():
                logger.info(
                    "Dropping site without usable data",
                    extra={"location": site.name, "reason": "all_zero"},
                )
                continue
            readings.append(reading)

        if readings:
            self.cache.put_many(readings)
        else:
            logger.warning("No usable readings after normalization", extra={"site_count": 0})

        logger.info(
            "Current readings aggregated",
            extra={
                "site_count": len(readings),
                "elapsed_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return readings

    async def fetch_forecast(
        self, lat: float, lon: float, location_label: Optional[str] = None
    ) -> List[ForecastPoint]:
        known = self._known_reading(lat, lon)
        label = location_label or (known.location_label if known else f"{lat:.4f}, {lon:.4f}")

        current, feed_steps = await asyncio.gather(
            self._pollution_current(lat, lon),
            self._pollution_feed(lat, lon),
        )

        base: Optional[CanonicalReading] = None
        if current:
            base = self.normalizer.normalize(
                current,
                self.source_priority,
                location_label=label,
                latitude=lat,
                longitude=lon,
            )
            if base.is_empty():
                base = None
        if base is None:
            base = known or baseline_reading(lat, lon, label)

        feed = [
            self.normalizer.normalize(
                step,
                self.source_priority,
                location_label=label,
                latitude=lat,
                longitude=lon,
            )
            for step in feed_steps
            if step
        ]
        points = self.forecaster.forecast(base, feed)
        logger.info(
            "Forecast generated",
            extra={"location": label, "step_count": len(points)},
        )
        return points

    async def _ground_sites(
        self, lat: float, lon: float, radius_km: float
    ) -> List[GroundSite]:
        sites: List[GroundSite] = []
        if self.ground is not None:
            try:
                sites = await self.ground.fetch_sites(lat, lon, radius_km, self.max_sites)
            except ProviderUnavailable as exc:
                logger.warning(
                    "Ground-sensor network unavailable, using synthetic sites",
                    extra={"provider": exc.provider, "reason": exc.reason},
                )
        if sites:
            return sites

        seed = self._known_reading(lat, lon)
        logger.info(
            "Serving synthetic ground sites",
            extra={"location": seed.location_label if seed else None, "reason": "fallback"},
        )
        return synthetic_sites(lat, lon, seed_reading=seed)

    async def _enrich(self, site: GroundSite) -> Sequence[ProviderReading]:
        if self.satellite is None:
            return ()
        try:
            readings = await self.satellite.lookup(site.latitude, site.longitude)
        except ProviderUnavailable as exc:
            logger.debug(
                "Satellite lookup unavailable",
                extra={"provider": exc.provider, "location": site.name, "reason": exc.reason},
            )
            return ()
        return readings or ()

    async def _pollution_current(self, lat: float, lon: float) -> List[ProviderReading]:
        if self.pollution is None:
            return []
        try:
            return await self.pollution.fetch_current(lat, lon)
        except ProviderUnavailable as exc:
            logger.warning(
                "Current pollution reading unavailable",
                extra={"provider": exc.provider, "reason": exc.reason},
            )
            return []

    async def _pollution_feed(self, lat: float, lon: float) -> Sequence[List[ProviderReading]]:
        if self.pollution is None:
            return []
        try:
            return await self.pollution.fetch_forecast(
                lat, lon, self.forecaster.horizon_steps
            )
        except ProviderUnavailable as exc:
            logger.warning(
                "Pollution forecast feed unavailable",
                extra={"provider": exc.provider, "reason": exc.reason},
            )
            return []

    def _known_reading(self, lat: float, lon: float) -> Optional[CanonicalReading]:
        reading = self.cache.nearest(lat, lon)
        if reading is None or reading.latitude is None or reading.longitude is None:
            return None
        if distance_km(lat, lon, reading.latitude, reading.longitude) > NEARBY_KM:
            return None
        return reading


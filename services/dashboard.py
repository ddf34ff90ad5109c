"""Composition root and periodic refresh for the air-quality dashboard."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

import httpx

from datastore.reading_cache import build_default_cache
from models.readings import (
    AdvisoryResult,
    CanonicalReading,
    DataSourceDescriptor,
    ForecastPoint,
)
from providers.gemini import GeminiTextGenerator
from providers.openaq import OpenAQClient
from providers.openweather import OpenWeatherPollutionClient
from providers.satellite import SatelliteClient
from services.advisory import AdvisoryResponder
from services.aggregator import SourceAggregator
from services.forecast import ForecastGenerator
from services.sources import get_data_sources
from settings import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonitoredArea:
    latitude: float
    longitude: float
    radius_km: float


class DashboardService:
    """Exposes the aggregation core to the presentation layer.

    Every refresh cycle is numbered. A cycle's readings become the latest
    snapshot only if no newer cycle has already published, so a slow,
    superseded cycle is discarded rather than cancelled.
    """

    def __init__(
        self,
        aggregator: SourceAggregator,
        responder: AdvisoryResponder,
        area: MonitoredArea,
        refresh_interval: float = 30.0,
        clients: Sequence[httpx.AsyncClient] = (),
    ) -> None:
        self.aggregator = aggregator
        self.responder = responder
        self.area = area
        self.refresh_interval = refresh_interval
        self._clients: Tuple[httpx.AsyncClient, ...] = tuple(clients)
        self._snapshot: Tuple[CanonicalReading, ...] = ()
        self._published_generation = 0
        self._next_generation = 0
        self._refresh_task: Optional[asyncio.Task[None]] = None

    @property
    def latest(self) -> List[CanonicalReading]:
        return list(self._snapshot)

    async def fetch_air_quality_data(self) -> List[CanonicalReading]:
        self._next_generation += 1
        generation = self._next_generation
        readings = await self.aggregator.fetch_current(
            self.area.latitude, self.area.longitude, self.area.radius_km
        )
        self._publish(generation, readings)
        return readings

    async def fetch_forecast(self, lat: float, lon: float) -> List[ForecastPoint]:
        return await self.aggregator.fetch_forecast(lat, lon)

    async def send_query(
        self, text: str, reading: Optional[CanonicalReading] = None
    ) -> AdvisoryResult:
        """Answer ``text`` about ``reading`` or, if omitted, the first latest reading."""
        if reading is None:
            if not self._snapshot:
                raise KeyError("No air-quality reading is available yet.")
            reading = self._snapshot[0]
        return await self.responder.respond(text, reading)

    def get_data_sources(self) -> Sequence[DataSourceDescriptor]:
        return get_data_sources()

    def start(self) -> None:
        """Begin periodic refreshes on the running event loop."""
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._refresh_loop())

    async def shutdown(self) -> None:
        """Stop refreshing and release HTTP clients."""
        task, self._refresh_task = self._refresh_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        for client in self._clients:
            await client.aclose()

    def _publish(self, generation: int, readings: Sequence[CanonicalReading]) -> None:
        if generation < self._published_generation:
            logger.info(
                "Discarding superseded refresh cycle",
                extra={"generation": generation},
            )
            return
        self._published_generation = generation
        self._snapshot = tuple(readings)
        logger.debug(
            "Snapshot published",
            extra={"generation": generation, "site_count": len(readings)},
        )

    async def _refresh_loop(self) -> None:
        while True:
            try:
                await self.fetch_air_quality_data()
            except Exception:  # noqa: BLE001 - keep polling after unexpected errors
                logger.exception("Refresh cycle failed")
            await asyncio.sleep(self.refresh_interval)


@lru_cache
def build_default_dashboard() -> DashboardService:
    """Factory that wires the dashboard with the configured providers."""
    settings = get_settings()
    client = httpx.AsyncClient(timeout=settings.provider_timeout)

    forecaster = ForecastGenerator(
        horizon_steps=settings.forecast_horizon_steps,
        step_interval_hours=settings.forecast_step_hours,
    )
    aggregator = SourceAggregator(
        ground=OpenAQClient(client, settings.openaq_base_url, settings.openaq_api_key),
        satellite=SatelliteClient(
            client, settings.satellite_base_url, settings.satellite_api_key
        ),
        pollution=OpenWeatherPollutionClient(
            client, settings.openweather_base_url, settings.openweather_api_key
        ),
        cache=build_default_cache(),
        forecaster=forecaster,
        max_sites=settings.max_sites,
    )
    responder = AdvisoryResponder(
        generator=GeminiTextGenerator(
            client, settings.gemini_api_url, settings.gemini_api_key
        ),
    )
    area = MonitoredArea(
        latitude=settings.default_latitude,
        longitude=settings.default_longitude,
        radius_km=settings.search_radius_km,
    )
    return DashboardService(
        aggregator=aggregator,
        responder=responder,
        area=area,
        refresh_interval=settings.refresh_interval,
        clients=(client,),
    )

"""Weather-service air pollution client (OpenWeatherMap ``/air_pollution``)."""

from __future__ import annotations

import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from models.readings import Pollutant, ProviderReading, SourceId
from providers.base import ProviderUnavailable, request_json
from providers.schemas import PollutionEntry, PollutionResponse

logger = logging.getLogger(__name__)

PROVIDER_NAME = "openweather"

_COMPONENT_FIELDS = (
    (Pollutant.co, "co"),
    (Pollutant.no, "no"),
    (Pollutant.no2, "no2"),
    (Pollutant.o3, "o3"),
    (Pollutant.so2, "so2"),
    (Pollutant.pm25, "pm2_5"),
    (Pollutant.pm10, "pm10"),
    (Pollutant.nh3, "nh3"),
)


class OpenWeatherPollutionClient:
    """Current pollution reading and hourly pollution forecast for a point.

    The service reports modelled concentrations, so its readings are tagged
    as reanalysis data.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        api_key: Optional[str],
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key

    async def fetch_current(self, lat: float, lon: float) -> List[ProviderReading]:
        entries = await self._fetch("air_pollution", lat, lon)
        if not entries:
            return []
        return entry_readings(entries[0])

    async def fetch_forecast(
        self, lat: float, lon: float, steps: int
    ) -> List[List[ProviderReading]]:
        entries = await self._fetch("air_pollution/forecast", lat, lon)
        return [entry_readings(entry) for entry in entries[:steps]]

    async def _fetch(self, path: str, lat: float, lon: float) -> List[PollutionEntry]:
        if not self._api_key:
            raise ProviderUnavailable(PROVIDER_NAME, "no API key configured")
        payload = await request_json(
            self._client,
            PROVIDER_NAME,
            "GET",
            f"{self._base_url}/{path}",
            params={"lat": lat, "lon": lon, "appid": self._api_key},
        )
        if not isinstance(payload, dict):
            raise ProviderUnavailable(PROVIDER_NAME, "unexpected payload")
        return parse_entries(payload)


def parse_entries(payload: dict) -> List[PollutionEntry]:
    try:
        envelope = PollutionResponse.model_validate(payload)
    except ValidationError as exc:
        raise ProviderUnavailable(PROVIDER_NAME, "malformed pollution envelope") from exc
    entries: List[PollutionEntry] = []
    for raw in envelope.entries:
        try:
            entries.append(PollutionEntry.model_validate(raw))
        except ValidationError:
            logger.warning(
                "Skipping malformed pollution entry",
                extra={"provider": PROVIDER_NAME, "reason": "validation"},
            )
    return entries


def entry_readings(entry: PollutionEntry) -> List[ProviderReading]:
    observed_at = entry.observed_at
    return [
        ProviderReading(
            parameter=pollutant,
            value=getattr(entry.components, field_name),
            unit="µg/m³",
            observed_at=observed_at,
            source_id=SourceId.reanalysis,
        )
        for pollutant, field_name in _COMPONENT_FIELDS
    ]

"""Satellite / reanalysis point lookup client (TEMPO, MERRA-2)."""

from __future__ import annotations

import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from models.readings import Pollutant, ProviderReading, SourceId
from providers.base import ProviderUnavailable, request_json
from providers.schemas import SatelliteObservation

logger = logging.getLogger(__name__)

PROVIDER_NAME = "satellite"

_REANALYSIS_TAGS = {"merra-2", "merra2"}


def source_for_tag(tag: str) -> SourceId:
    if tag.strip().lower() in _REANALYSIS_TAGS:
        return SourceId.reanalysis
    return SourceId.satellite


class SatelliteClient:
    """Looks up column-derived NO2/O3/CO estimates for a coordinate."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: Optional[str],
        api_key: Optional[str] = None,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/") if base_url else None
        self._api_key = api_key

    async def lookup(self, lat: float, lon: float) -> Optional[List[ProviderReading]]:
        if self._base_url is None:
            raise ProviderUnavailable(PROVIDER_NAME, "no endpoint configured")

        params = {"lat": lat, "lon": lon}
        if self._api_key:
            params["api_key"] = self._api_key
        payload = await request_json(
            self._client, PROVIDER_NAME, "GET", f"{self._base_url}/lookup", params=params
        )
        if not payload:
            return None
        try:
            observation = SatelliteObservation.model_validate(payload)
        except ValidationError as exc:
            raise ProviderUnavailable(PROVIDER_NAME, "malformed observation") from exc
        return self.to_readings(observation)

    @staticmethod
    def to_readings(observation: SatelliteObservation) -> List[ProviderReading]:
        source_id = source_for_tag(observation.source)
        readings: List[ProviderReading] = []
        for pollutant, value in (
            (Pollutant.no2, observation.no2),
            (Pollutant.o3, observation.o3),
            (Pollutant.co, observation.co),
        ):
            if value is None:
                continue
            readings.append(
                ProviderReading(
                    parameter=pollutant,
                    value=value,
                    unit="µg/m³",
                    observed_at=observation.timestamp,
                    source_id=source_id,
                )
            )
        return readings

"""Ground-sensor network client (OpenAQ-style ``/locations`` endpoint)."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

import httpx
from pydantic import ValidationError

from models.readings import GroundSite, ProviderReading, SourceId
from providers.base import ProviderUnavailable, request_json
from providers.schemas import OpenAQLocation, OpenAQLocationsResponse, OpenAQParameter
from services.normalizer import parse_parameter

logger = logging.getLogger(__name__)

PROVIDER_NAME = "openaq"


class OpenAQClient:
    """Fetches nearby monitoring locations ordered by distance."""

    def __init__(
        self, client: httpx.AsyncClient, base_url: str, api_key: Optional[str] = None
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._headers = {"Accept": "application/json"}
        if api_key:
            self._headers["X-API-Key"] = api_key

    async def fetch_sites(
        self, lat: float, lon: float, radius_km: float, limit: int
    ) -> List[GroundSite]:
        params = {
            "coordinates": f"{lat},{lon}",
            "radius": int(radius_km * 1000),
            "limit": limit,
            "order_by": "distance",
        }
        payload = await request_json(
            self._client,
            PROVIDER_NAME,
            "GET",
            f"{self._base_url}/locations",
            params=params,
            headers=self._headers,
        )
        return self.parse_sites(payload, lat, lon)

    @staticmethod
    def parse_sites(payload: object, lat: float, lon: float) -> List[GroundSite]:
        """Convert a raw payload into sites, skipping entries that fail validation."""
        if not isinstance(payload, dict):
            logger.warning(
                "Unexpected locations payload", extra={"provider": PROVIDER_NAME}
            )
            return []

        try:
            envelope = OpenAQLocationsResponse.model_validate(payload)
        except ValidationError as exc:
            raise ProviderUnavailable(PROVIDER_NAME, "malformed locations envelope") from exc

        sites: List[GroundSite] = []
        for index, raw in enumerate(envelope.results):
            try:
                location = OpenAQLocation.model_validate(raw)
            except ValidationError as exc:
                logger.warning(
                    "Skipping malformed location",
                    extra={
                        "provider": PROVIDER_NAME,
                        "reason": f"entry {index}: {exc.error_count()} errors",
                    },
                )
                continue
            sites.append(_to_site(location, lat, lon))
        return sites


def _to_site(location: OpenAQLocation, lat: float, lon: float) -> GroundSite:
    fallback_time = datetime.now(timezone.utc)
    readings: List[ProviderReading] = []
    for index, raw in enumerate(location.parameters):
        try:
            parameter = OpenAQParameter.model_validate(raw)
        except ValidationError:
            logger.warning(
                "Skipping malformed parameter",
                extra={
                    "provider": PROVIDER_NAME,
                    "location": location.name,
                    "reason": f"parameter {index}",
                },
            )
            continue
        pollutant = parse_parameter(parameter.parameter)
        if pollutant is None:
            continue
        readings.append(
            ProviderReading(
                parameter=pollutant,
                value=parameter.last_value,
                unit=parameter.unit,
                observed_at=parameter.last_updated or fallback_time,
                source_id=SourceId.ground_sensor,
            )
        )

    latitude = location.coordinates.latitude
    longitude = location.coordinates.longitude
    return GroundSite(
        location_id=str(location.id) if location.id is not None else location.name,
        name=location.name,
        latitude=latitude if latitude is not None else lat,
        longitude=longitude if longitude is not None else lon,
        readings=tuple(readings),
    )


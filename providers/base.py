"""Shared provider plumbing: errors, interfaces and HTTP helpers."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Protocol, Sequence

import httpx

from models.readings import GroundSite, ProviderReading

logger = logging.getLogger(__name__)


class ProviderUnavailable(Exception):
    """Raised when a provider answers with a non-success status or not at all."""

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"{provider} unavailable: {reason}")
        self.provider = provider
        self.reason = reason


class GroundSensorProvider(Protocol):
    async def fetch_sites(
        self, lat: float, lon: float, radius_km: float, limit: int
    ) -> List[GroundSite]:
        ...


class SatelliteProvider(Protocol):
    async def lookup(self, lat: float, lon: float) -> Optional[List[ProviderReading]]:
        ...


class PollutionForecastProvider(Protocol):
    async def fetch_current(self, lat: float, lon: float) -> List[ProviderReading]:
        ...

    async def fetch_forecast(
        self, lat: float, lon: float, steps: int
    ) -> Sequence[List[ProviderReading]]:
        ...


class TextGenerator(Protocol):
    async def generate(self, prompt: str) -> Optional[str]:
        ...


async def request_json(
    client: httpx.AsyncClient,
    provider: str,
    method: str,
    url: str,
    *,
    params: Optional[Mapping[str, Any]] = None,
    json: Any = None,
    headers: Optional[Mapping[str, str]] = None,
) -> Any:
    """Issue a request and decode the JSON body, mapping every failure to
    :class:`ProviderUnavailable`."""
    try:
        response = await client.request(
            method, url, params=params, json=json, headers=headers
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        status_code = exc.response.status_code
        logger.warning(
            "Provider returned error status",
            extra={"provider": provider, "status_code": status_code},
        )
        raise ProviderUnavailable(provider, f"status {status_code}") from exc
    except httpx.HTTPError as exc:
        logger.warning(
            "Provider transport failure",
            extra={"provider": provider, "reason": type(exc).__name__},
        )
        raise ProviderUnavailable(provider, str(exc) or type(exc).__name__) from exc

    try:
        return response.json()
    except ValueError as exc:
        raise ProviderUnavailable(provider, "invalid JSON body") from exc

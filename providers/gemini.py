"""Generative text backend client (Gemini ``generateContent``)."""

from __future__ import annotations

from typing import Optional

import httpx
from pydantic import ValidationError

from providers.base import ProviderUnavailable, request_json
from providers.schemas import GeminiResponse

PROVIDER_NAME = "gemini"


class GeminiTextGenerator:
    def __init__(
        self,
        client: httpx.AsyncClient,
        api_url: str,
        api_key: Optional[str],
        temperature: float = 0.7,
        max_output_tokens: int = 500,
    ) -> None:
        self._client = client
        self._api_url = api_url
        self._api_key = api_key
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    async def generate(self, prompt: str) -> Optional[str]:
        """Return generated text, or ``None`` when the backend produced nothing."""
        if not self._api_key:
            raise ProviderUnavailable(PROVIDER_NAME, "no API key configured")

        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }
        payload = await request_json(
            self._client,
            PROVIDER_NAME,
            "POST",
            self._api_url,
            params={"key": self._api_key},
            json=body,
        )
        try:
            response = GeminiResponse.model_validate(payload)
        except ValidationError as exc:
            raise ProviderUnavailable(PROVIDER_NAME, "malformed response") from exc
        return response.first_text()

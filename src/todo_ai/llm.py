from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from .errors import ConfigurationError, ExternalCallFailure, QuotaExceeded
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

Schema = Dict[str, Any]


class StructuredGenerator(ABC):
    @abstractmethod
    def generate(self, prompt: str, schema: Schema) -> Dict[str, Any]:
        """
        Return the model output for ``prompt`` as an object shaped by ``schema``.
        Conformance is best effort; callers must tolerate missing or malformed fields.
        """
        raise NotImplementedError


class GeminiGenerator(StructuredGenerator):
    """Structured output through the Generative Language REST API (generateContent)."""

    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.api_key = settings.google_api_key
        self.model = settings.gemini_model
        self.base_url = settings.gemini_base_url
        self.timeout = settings.llm_timeout_seconds
        self._transport = transport

    def generate(self, prompt: str, schema: Schema) -> Dict[str, Any]:
        if not self.api_key:
            raise ConfigurationError()
        url = f"{self.base_url}/models/{self.model}:generateContent"
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": schema,
            },
        }

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                r = client.post(url, headers=headers, json=payload)
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 429:
                raise QuotaExceeded() from e
            raise ExternalCallFailure(details=f"{e.response.status_code}: {e.response.text}") from e
        except httpx.HTTPError as e:
            raise ExternalCallFailure(details=str(e) or type(e).__name__) from e
        except ValueError as e:
            raise ExternalCallFailure(details=f"response body is not JSON: {e}") from e

        return _parse_candidate(data)


def _parse_candidate(data: Any) -> Dict[str, Any]:
    try:
        parts = data["candidates"][0]["content"]["parts"]
        text = "".join(p.get("text", "") for p in parts)
    except (KeyError, IndexError, TypeError, AttributeError) as e:
        raise ExternalCallFailure(details=f"unexpected response shape: {data!r}"[:500]) from e

    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExternalCallFailure(details=f"model output is not JSON: {e}") from e

    if not isinstance(obj, dict):
        raise ExternalCallFailure(details="model output is not a JSON object")
    logger.debug("Structured output keys: %s", sorted(obj))
    return obj


def require_credential(settings: Settings) -> None:
    """Fail fast with ConfigurationError when no API key is configured."""
    if not settings.google_api_key:
        raise ConfigurationError()


# PUBLIC_INTERFACE
def get_generator() -> StructuredGenerator:
    """
    FastAPI dependency returning the configured generator. Construction never fails;
    handlers call ``require_credential`` after validating their input.
    """
    return GeminiGenerator(get_settings())

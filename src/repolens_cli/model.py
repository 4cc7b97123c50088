"""Gemini model client - remote structured generation.

Sends one prompt plus a response schema to the generateContent
endpoint and hands back the raw JSON text of the first candidate.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import DEFAULT_MODEL, GEMINI_BASE_URL
from .errors import AIRequestFailed, MissingCredential

logger = logging.getLogger(__name__)

# None: the call blocks until the backend answers or errors
GENERATE_TIMEOUT = None


class GeminiClient:
    """Client for the Gemini REST API."""

    def __init__(
        self,
        api_key: str = "",
        model: str = DEFAULT_MODEL,
        base_url: str = GEMINI_BASE_URL,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(timeout=GENERATE_TIMEOUT)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def generate_json(
        self,
        prompt: str,
        schema: dict[str, Any],
        temperature: float = 0.2,
    ) -> str:
        """Generate a JSON response constrained to ``schema``. Returns raw text."""
        if not self.api_key:
            raise MissingCredential(
                "No Gemini API key configured. Set GEMINI_API_KEY in the environment."
            )

        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "responseMimeType": "application/json",
                "responseSchema": schema,
            },
        }

        try:
            resp = self._client.post(
                self.endpoint,
                json=payload,
                headers={"x-goog-api-key": self.api_key},
            )
        except httpx.TimeoutException:
            raise AIRequestFailed("Model generation timed out")
        except httpx.ConnectError:
            raise AIRequestFailed(f"Cannot connect to {self.base_url}")
        except httpx.HTTPError as e:
            raise AIRequestFailed(f"Request to Gemini failed: {e}")

        if resp.status_code != 200:
            raise AIRequestFailed(
                f"Gemini returned {resp.status_code}: {resp.text[:200]}"
            )

        try:
            data = resp.json()
        except ValueError:
            raise AIRequestFailed(f"Gemini returned a non-JSON envelope: {resp.text[:200]}")
        return _candidate_text(data)


def _candidate_text(data: Any) -> str:
    """Concatenate the text parts of the first candidate."""
    try:
        return _extract_text(data)
    except (AttributeError, TypeError, IndexError, KeyError) as e:
        raise AIRequestFailed(f"Gemini returned an unexpected envelope: {e}")


def _extract_text(data: dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        reason = (data.get("promptFeedback") or {}).get("blockReason", "no candidates")
        raise AIRequestFailed(f"Gemini returned no candidates ({reason})")
    parts = (candidates[0].get("content") or {}).get("parts") or []
    text = "".join(p.get("text", "") for p in parts)
    if not text:
        raise AIRequestFailed("Gemini returned an empty candidate")
    return text

"""Remote inference client for the Gemini ``generateContent`` REST endpoint.

Every call is a single user turn made of ordered content parts (text and/or
inline base64 images).  No conversation history is sent; each request is
stateless from the endpoint's point of view.  Failures of any kind on the
wire are raised as ``AppError(TRANSPORT_FAILURE)`` so callers only deal with
one exception type.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Optional

import requests

from config import DEFAULT_BASE_URL, DEFAULT_MODEL
from errors import TRANSPORT_FAILURE, AppError
from models import AcquiredImage

logger = logging.getLogger(__name__)


def text_part(text: str) -> dict:
    return {"text": text}


def image_part(image: AcquiredImage) -> dict:
    """Inline an acquired image as base64 data with its MIME type."""
    return {
        "inlineData": {
            "mimeType": image.mime_type,
            "data": base64.b64encode(image.data).decode("ascii"),
        }
    }


def extract_text(body: Any) -> str:
    """Pull the first candidate's first text part; ``""`` when there is none."""
    if not isinstance(body, dict):
        return ""
    candidates = body.get("candidates") or []
    if not isinstance(candidates, list) or not candidates:
        return ""
    first = candidates[0]
    if not isinstance(first, dict):
        return ""
    content = first.get("content") or {}
    if not isinstance(content, dict):
        return ""
    parts = content.get("parts") or []
    if not isinstance(parts, list) or not parts:
        return ""
    value = parts[0]
    if isinstance(value, dict):
        return str(value.get("text", "") or "")
    return ""


class GeminiClient:
    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        request_timeout_s: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._request_timeout_s = request_timeout_s
        self._session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/models/{self._model}:generateContent"

    def generate(self, parts: list[dict]) -> dict:
        """Send one user turn and return the decoded response body."""
        if not self._api_key:
            raise AppError(TRANSPORT_FAILURE, "No API key configured")

        payload = {"contents": [{"role": "user", "parts": parts}]}
        try:
            response = self._session.post(
                self.endpoint,
                json=payload,
                headers={"x-goog-api-key": self._api_key},
                timeout=self._request_timeout_s,
            )
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as exc:
            logger.warning("generateContent request failed: %s", exc)
            raise AppError(TRANSPORT_FAILURE, str(exc)) from exc
        except ValueError as exc:
            logger.warning("generateContent returned a non-JSON body: %s", exc)
            raise AppError(TRANSPORT_FAILURE, f"invalid response body: {exc}") from exc

        if not isinstance(body, dict):
            raise AppError(TRANSPORT_FAILURE, "invalid response body")
        return body

    def close(self) -> None:
        self._session.close()

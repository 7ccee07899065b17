"""
Translation client interface and implementations.

A client performs exactly one upstream call per chunk and language pair. It
has no retry policy of its own: every failure surfaces as UpstreamError and
the RetryingTranslator decides what to do with it.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, runtime_checkable

import httpx

from translation.errors import UpstreamError
from translation.languages import AUTO_DETECT

logger = logging.getLogger(__name__)

USER_AGENT = "deeplx-translate/1.0"


@runtime_checkable
class TranslationClient(Protocol):
    """Upstream translation engine interface."""

    async def translate_one(
        self, text: str, source_lang: str, target_lang: str
    ) -> str:
        """Translate one chunk. Raises UpstreamError on any failure."""


class DeepLXClient:
    """Client for a DeepLX-compatible ``POST /translate`` endpoint."""

    def __init__(
        self,
        api_url: str,
        *,
        timeout: float = 25.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api_url = api_url
        self._timeout = timeout
        self._http_client = http_client

    @staticmethod
    def build_payload(text: str, source_lang: str, target_lang: str) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "text": text,
            "target_lang": target_lang.upper(),
        }
        if source_lang and source_lang.upper() != AUTO_DETECT:
            payload["source_lang"] = source_lang.upper()
        return payload

    async def translate_one(
        self, text: str, source_lang: str, target_lang: str
    ) -> str:
        payload = self.build_payload(text, source_lang, target_lang)
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }

        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    self._api_url, json=payload, headers=headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self._api_url, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            raise UpstreamError(
                f"Translation request timed out after {self._timeout}s"
            ) from exc
        except httpx.RequestError as exc:
            raise UpstreamError(f"Translation service unreachable: {exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            raise UpstreamError(
                f"Translation API returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            result = response.json()
        except ValueError as exc:
            raise UpstreamError(
                "Translation API returned malformed JSON", retryable=False
            ) from exc

        if not isinstance(result, dict):
            raise UpstreamError("Unexpected translation API payload", retryable=False)

        code = result.get("code")
        data = result.get("data")
        if code == 200 and isinstance(data, str) and data:
            return data

        message = result.get("message") or result.get("error") or "Translation API reported failure"
        if isinstance(code, int) and code != 200:
            raise UpstreamError(str(message), status_code=code)
        raise UpstreamError(str(message), retryable=False)


class FakeTranslationClient:
    """Client that never calls external APIs; tags text with the target code."""

    async def translate_one(
        self, text: str, source_lang: str, target_lang: str
    ) -> str:
        return f"[{target_lang.upper()}] {text}"

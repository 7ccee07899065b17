"""
Retrying Unit Translator

Wraps a TranslationClient with bounded retries, exponential backoff with
jitter and a fallback phrase. A unit translation never raises: once retries
are exhausted the chunk is reported as failed and callers substitute the
fallback text, so one bad chunk cannot abort a whole job.
"""

from __future__ import annotations

# Standard library
import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Literal, Optional

# Local application
from translation.chunker import Chunk
from translation.client import TranslationClient
from translation.errors import UpstreamError
from translation.fallback import FallbackProvider, demo_fallback_text

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_DELAY = 16.0
JITTER_RATIO = 0.3

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class UnitResult:
    """Outcome of translating one chunk into one language."""

    chunk_index: int
    status: Literal["success", "failed"]
    text: Optional[str] = None
    error: Optional[str] = None
    attempts: int = 1

    def __post_init__(self) -> None:
        if self.status == "success" and (self.text is None or self.error is not None):
            raise ValueError("Successful unit result needs text and no error")
        if self.status == "failed" and (self.error is None or self.text is not None):
            raise ValueError("Failed unit result needs an error and no text")

    @property
    def ok(self) -> bool:
        return self.status == "success"


def compute_retry_delay(
    attempt: int,
    *,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    rng: Optional[random.Random] = None,
) -> float:
    """
    Backoff before the attempt following ``attempt`` (1-based).

    Exponential (1s, 2s, 4s, ...) plus up to 30% random jitter, capped at
    ``max_delay``.
    """
    delay = base_delay * (2 ** (attempt - 1))
    jitter = (rng or random).random() * JITTER_RATIO * delay
    return min(delay + jitter, max_delay)


def is_retryable_error(error: BaseException) -> bool:
    """Classifies an upstream failure as worth another attempt."""
    if isinstance(error, UpstreamError):
        return error.retryable
    return isinstance(error, (asyncio.TimeoutError, TimeoutError, ConnectionError))


class RetryingTranslator:
    """Bounded-retry wrapper around a TranslationClient."""

    def __init__(
        self,
        client: TranslationClient,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
        call_timeout: Optional[float] = None,
        fallback_provider: FallbackProvider = demo_fallback_text,
        sleep: Sleep = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.client = client
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.call_timeout = call_timeout
        self.fallback_provider = fallback_provider
        self._sleep = sleep
        self._rng = rng

    async def _call(self, text: str, source_lang: str, target_lang: str) -> str:
        call = self.client.translate_one(text, source_lang, target_lang)
        if self.call_timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self.call_timeout)
        except asyncio.TimeoutError as exc:
            raise UpstreamError(
                f"Translation call exceeded {self.call_timeout}s"
            ) from exc

    async def translate_unit(
        self,
        chunk: Chunk,
        source_lang: str,
        target_lang: str,
        max_attempts: Optional[int] = None,
    ) -> UnitResult:
        """
        Translates one chunk with retries.

        Never raises (task cancellation excepted). Retryable failures are
        retried until the attempt budget runs out; terminal failures stop
        immediately.

        Returns:
            UnitResult with the translation, or a failed result carrying the
            last error message.
        """
        attempts_allowed = max_attempts or self.max_attempts
        last_error = "no attempt made"

        for attempt in range(1, attempts_allowed + 1):
            try:
                translated = await self._call(chunk.text, source_lang, target_lang)
                if attempt > 1:
                    logger.info(
                        f"Chunk {chunk.index} -> {target_lang} succeeded after {attempt} attempts"
                    )
                return UnitResult(
                    chunk_index=chunk.index,
                    status="success",
                    text=translated,
                    attempts=attempt,
                )
            except Exception as exc:  # noqa: BLE001
                last_error = str(exc) or type(exc).__name__
                retryable = is_retryable_error(exc)

                if retryable and attempt < attempts_allowed:
                    delay = compute_retry_delay(
                        attempt,
                        base_delay=self.base_delay,
                        max_delay=self.max_delay,
                        rng=self._rng,
                    )
                    logger.warning(
                        f"Chunk {chunk.index} -> {target_lang} attempt {attempt}/{attempts_allowed} "
                        f"failed: {last_error}. Retrying in {delay:.2f}s"
                    )
                    await self._sleep(delay)
                    continue

                if not retryable:
                    logger.error(
                        f"Chunk {chunk.index} -> {target_lang} non-retryable failure: {last_error}"
                    )
                else:
                    logger.error(
                        f"Chunk {chunk.index} -> {target_lang}: all {attempts_allowed} attempts "
                        f"exhausted, last error: {last_error}"
                    )
                return UnitResult(
                    chunk_index=chunk.index,
                    status="failed",
                    error=last_error,
                    attempts=attempt,
                )

        return UnitResult(
            chunk_index=chunk.index,
            status="failed",
            error=last_error,
            attempts=attempts_allowed,
        )

    def fallback_for(self, target_lang: str) -> str:
        return self.fallback_provider(target_lang)

    async def translate_chunk_with_retry(
        self,
        chunk: Chunk,
        source_lang: str,
        target_lang: str,
        max_attempts: Optional[int] = None,
    ) -> str:
        """Best-effort text for one chunk: the translation or the fallback phrase."""
        result = await self.translate_unit(chunk, source_lang, target_lang, max_attempts)
        if result.ok:
            return result.text
        logger.warning(f"Using fallback text for chunk {chunk.index} -> {target_lang}")
        return self.fallback_for(target_lang)

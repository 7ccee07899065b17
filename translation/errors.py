"""Exceptions raised by the translation pipeline and its collaborators."""

from __future__ import annotations

# Statuses worth another attempt: timeouts, rate limits, 5xx and the
# Cloudflare 52x family.
RETRYABLE_STATUS_CODES = frozenset(
    {408, 429, 500, 502, 503, 504, 520, 521, 522, 523, 524}
)


def is_retryable_status(status_code: int | None) -> bool:
    """Returns True when an upstream HTTP status should be retried."""
    return status_code in RETRYABLE_STATUS_CODES


class UpstreamError(RuntimeError):
    """
    An external call (translation, extraction, materialization) failed.

    Attributes:
        status_code: HTTP status (or payload code) when one was received;
            None for network-level failures.
        retryable: Whether retrying the same call may succeed. Defaults to
            the status-based classification, and to True for network-level
            failures without a status.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        if retryable is None:
            retryable = status_code is None or is_retryable_status(status_code)
        self.retryable = retryable

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (status {self.status_code})"
        return self.message


class ExtractionError(UpstreamError):
    """Text could not be extracted from an uploaded document."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=False)


class MaterializationError(UpstreamError):
    """A translated document could not be produced."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=False)


class TranslationSuperseded(RuntimeError):
    """A newer request replaced the one being processed; its output is dropped."""

    def __init__(self, generation: int, current: int) -> None:
        super().__init__(
            f"Translation generation {generation} superseded by {current}"
        )
        self.generation = generation
        self.current = current

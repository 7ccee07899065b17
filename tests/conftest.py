"""
Pytest Configuration and Shared Fixtures

Provides stub translation clients and pipeline builders shared by the unit,
pipeline and API tests.
"""

# Standard library
import asyncio
import os
import sys
from typing import Dict, Iterable, List, Optional, Tuple
from unittest.mock import AsyncMock

# Third-party
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import Settings  # noqa: E402
from documents.pipeline import JobPipeline  # noqa: E402
from documents.storage import InMemoryDocumentStorage  # noqa: E402
from documents.store import InMemoryJobStore  # noqa: E402
from translation.errors import UpstreamError  # noqa: E402
from translation.fallback import placeholder_fallback  # noqa: E402
from translation.retry import RetryingTranslator  # noqa: E402
from translation.scheduler import BatchScheduler  # noqa: E402


# ============================================================================
# Stub Clients
# ============================================================================

class StubTranslationClient:
    """
    In-process client: tags text with the target code, fails permanently for
    ``failing_langs`` and sleeps ``delays[text]`` seconds before answering.
    """

    def __init__(
        self,
        failing_langs: Iterable[str] = (),
        delays: Optional[Dict[str, float]] = None,
        status_code: int = 503,
    ) -> None:
        self.failing_langs = set(failing_langs)
        self.delays = delays or {}
        self.status_code = status_code
        self.calls: List[Tuple[str, str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def translate_one(self, text: str, source_lang: str, target_lang: str) -> str:
        self.calls.append((text, source_lang, target_lang))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(text, 0))
            if target_lang in self.failing_langs:
                raise UpstreamError("Service unavailable", status_code=self.status_code)
            return f"[{target_lang}] {text}"
        finally:
            self.in_flight -= 1


def build_scheduler(
    client,
    *,
    max_attempts: int = 2,
    concurrency: int = 3,
) -> BatchScheduler:
    """Scheduler whose backoff sleeps return immediately."""
    translator = RetryingTranslator(
        client,
        max_attempts=max_attempts,
        fallback_provider=placeholder_fallback,
        sleep=AsyncMock(),
    )
    return BatchScheduler(translator, concurrency=concurrency)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def stub_client():
    return StubTranslationClient()


@pytest.fixture
def job_store():
    return InMemoryJobStore()


@pytest.fixture
def document_storage():
    return InMemoryDocumentStorage()


@pytest.fixture
def make_pipeline(job_store, document_storage):
    """Factory building a JobPipeline around a given client."""

    def _make(client, *, chunk_size: int = 20, concurrency: int = 2, **kwargs) -> JobPipeline:
        scheduler = build_scheduler(client, concurrency=concurrency)
        return JobPipeline(
            job_store,
            scheduler,
            storage=document_storage,
            chunk_size=chunk_size,
            chunk_margin=10,
            **kwargs,
        )

    return _make


@pytest.fixture
def test_settings():
    """Settings with fast retries and the session gate bypassed."""
    return Settings(
        deeplx_api_url="http://deeplx.test/translate",
        chunk_size=40,
        chunk_margin=10,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        text_max_attempts=2,
        document_max_attempts=2,
        max_text_length=5000,
        max_file_size=1024,
        dev_mode=True,
    )

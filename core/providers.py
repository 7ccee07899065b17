"""
Provider registry and interfaces for external dependencies.

This module centralizes the translation engine, upload storage and access
gate selection so tests can run without touching the real translation API.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from core.auth import InMemorySessionGate, SessionGate
from core.config import Settings, get_settings
from documents.storage import DocumentStorage, InMemoryDocumentStorage
from translation.client import DeepLXClient, FakeTranslationClient, TranslationClient
from translation.fallback import FallbackProvider, demo_fallback_text, placeholder_fallback

logger = logging.getLogger(__name__)


def _is_true(name: str, default: str = "false") -> bool:
    """Parse boolean-like env vars."""
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def should_use_fake_providers() -> bool:
    """TEST_MODE=true always means fake; USE_FAKE_PROVIDERS=true opts in."""
    return _is_true("TEST_MODE") or _is_true("USE_FAKE_PROVIDERS")


@dataclass
class ProviderRegistry:
    """Container for active providers."""

    translation_client: TranslationClient
    document_storage: DocumentStorage
    session_gate: SessionGate
    fallback_provider: FallbackProvider = demo_fallback_text


_registry: Optional[ProviderRegistry] = None


def build_registry(
    use_fake: bool, settings: Optional[Settings] = None
) -> ProviderRegistry:
    """Creates a fresh registry without touching the global one."""
    settings = settings or get_settings()
    if use_fake:
        return ProviderRegistry(
            translation_client=FakeTranslationClient(),
            document_storage=InMemoryDocumentStorage(),
            session_gate=InMemorySessionGate(),
            fallback_provider=placeholder_fallback,
        )
    return ProviderRegistry(
        translation_client=DeepLXClient(
            settings.deeplx_api_url, timeout=settings.request_timeout
        ),
        document_storage=InMemoryDocumentStorage(),
        session_gate=InMemorySessionGate(),
        fallback_provider=demo_fallback_text,
    )


def configure_providers(use_fake: Optional[bool] = None) -> ProviderRegistry:
    """
    Configure global provider registry.

    Args:
        use_fake: Force fake/real mode. If omitted, infer from env.
    """
    global _registry

    if use_fake is None:
        use_fake = should_use_fake_providers()

    _registry = build_registry(use_fake)
    logger.info(f"Provider registry configured (fake={use_fake})")
    return _registry


def get_registry() -> ProviderRegistry:
    global _registry
    if _registry is None:
        _registry = configure_providers()
    return _registry


def get_translation_client() -> TranslationClient:
    """Return translation client from active registry."""
    return get_registry().translation_client


def get_document_storage() -> DocumentStorage:
    """Return document storage from active registry."""
    return get_registry().document_storage


def using_fake_providers() -> bool:
    """Return whether fake providers are currently active."""
    return isinstance(get_registry().translation_client, FakeTranslationClient)

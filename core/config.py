"""
Runtime settings for the translation pipeline.

Values come from environment variables (optionally loaded from config.env by
the app factory) and are cached so every module sees the same snapshot.
"""

from __future__ import annotations

# Standard library
import logging
import os
from dataclasses import dataclass
from functools import lru_cache

logger = logging.getLogger(__name__)

DEFAULT_DEEPLX_API_URL = "https://dplx.xi-xu.me/translate"


def _is_true(name: str, default: str = "false") -> bool:
    """Parse boolean-like env vars."""
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {name}={raw!r}, using default {default}")
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid number for {name}={raw!r}, using default {default}")
        return default


@dataclass(frozen=True)
class Settings:
    """Pipeline tuning knobs. Durations are in seconds."""

    deeplx_api_url: str = DEFAULT_DEEPLX_API_URL
    request_timeout: float = 25.0
    chunk_size: int = 3000
    chunk_margin: int = 50
    concurrency: int = 3
    text_max_attempts: int = 3
    document_max_attempts: int = 5
    retry_base_delay: float = 1.0
    retry_max_delay: float = 16.0
    max_text_length: int = 1_000_000
    max_file_size: int = 10 * 1024 * 1024
    job_ttl_seconds: float = 24 * 60 * 60
    sweep_interval_seconds: float = 60 * 60
    dev_mode: bool = False
    admin_token: str | None = None


def load_settings() -> Settings:
    """Builds a Settings instance from the current environment."""
    return Settings(
        deeplx_api_url=os.getenv("DEEPLX_API_URL", DEFAULT_DEEPLX_API_URL),
        request_timeout=_env_float("TRANSLATION_TIMEOUT", 25.0),
        chunk_size=_env_int("CHUNK_SIZE", 3000),
        chunk_margin=_env_int("CHUNK_MARGIN", 50),
        concurrency=max(1, _env_int("TRANSLATION_CONCURRENCY", 3)),
        text_max_attempts=max(1, _env_int("TEXT_MAX_ATTEMPTS", 3)),
        document_max_attempts=max(1, _env_int("DOCUMENT_MAX_ATTEMPTS", 5)),
        retry_base_delay=_env_float("RETRY_BASE_DELAY", 1.0),
        retry_max_delay=_env_float("RETRY_MAX_DELAY", 16.0),
        max_text_length=_env_int("MAX_TEXT_LENGTH", 1_000_000),
        max_file_size=_env_int("MAX_FILE_SIZE", 10 * 1024 * 1024),
        job_ttl_seconds=_env_float("JOB_TTL_SECONDS", 24 * 60 * 60),
        sweep_interval_seconds=_env_float("SWEEP_INTERVAL_SECONDS", 60 * 60),
        dev_mode=_is_true("DEV_MODE"),
        admin_token=os.getenv("ADMIN_TOKEN") or None,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Returns the cached settings snapshot.

    Call ``get_settings.cache_clear()`` after changing the environment
    (tests do this through monkeypatch).
    """
    settings = load_settings()
    logger.info(
        f"Settings loaded (chunk_size={settings.chunk_size}, "
        f"concurrency={settings.concurrency}, timeout={settings.request_timeout}s)"
    )
    return settings

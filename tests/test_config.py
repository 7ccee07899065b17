"""Tests for environment-driven settings."""

from pathlib import Path

import pytest

from core.config import get_settings, load_settings

PROJECT_ROOT = Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(monkeypatch):
    for key in (
        "CHUNK_SIZE",
        "TRANSLATION_TIMEOUT",
        "DOCUMENT_MAX_ATTEMPTS",
        "TEXT_MAX_ATTEMPTS",
        "JOB_TTL_SECONDS",
    ):
        monkeypatch.delenv(key, raising=False)

    settings = load_settings()

    assert settings.chunk_size == 3000
    assert settings.document_max_attempts == 5
    assert settings.text_max_attempts == 3
    assert settings.job_ttl_seconds == 86400


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("CHUNK_SIZE", "500")
    monkeypatch.setenv("TRANSLATION_CONCURRENCY", "0")
    monkeypatch.setenv("RETRY_BASE_DELAY", "0.25")
    monkeypatch.setenv("DEV_MODE", "yes")
    monkeypatch.setenv("ADMIN_TOKEN", "secret")

    settings = get_settings()

    assert settings.chunk_size == 500
    assert settings.concurrency == 1
    assert settings.retry_base_delay == 0.25
    assert settings.dev_mode is True
    assert settings.admin_token == "secret"
    assert get_settings() is settings


def test_invalid_numbers_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("CHUNK_SIZE", "lots")
    monkeypatch.setenv("TRANSLATION_TIMEOUT", "soon")

    settings = load_settings()

    assert settings.chunk_size == 3000
    assert settings.request_timeout == 25.0


def test_example_env_keys_are_documented():
    """Every key in config.env.example is read somewhere in the code."""
    example = PROJECT_ROOT / "config.env.example"
    keys = set()
    for line in example.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#") and "=" in line:
            keys.add(line.split("=", 1)[0].strip())

    sources = "".join(
        path.read_text(encoding="utf-8") for path in (PROJECT_ROOT / "core").glob("*.py")
    )
    missing = {key for key in keys if f'"{key}"' not in sources}
    assert not missing, f"Keys not read by core/: {missing}"

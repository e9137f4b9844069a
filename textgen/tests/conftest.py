"""Pytest fixtures and config."""


import pytest


@pytest.fixture(autouse=True)
def env_cleanup(monkeypatch):
    """Keep real credentials and endpoints out of tests."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_BASE_URL", raising=False)
    monkeypatch.delenv("TEXTGEN_LOG_LEVEL", raising=False)
    monkeypatch.delenv("TEXTGEN_ENV_PREFIX", raising=False)
    yield

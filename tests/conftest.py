"""Pytest configuration and fixtures for all tests."""

import pytest

from lmstudio_oss.core.config import BASE_URL_ENV_VAR, PORT_ENV_VAR


@pytest.fixture(autouse=True)
def clear_lmstudio_env(monkeypatch):
    """Keep the developer's LM Studio overrides out of the tests."""
    monkeypatch.delenv(BASE_URL_ENV_VAR, raising=False)
    monkeypatch.delenv(PORT_ENV_VAR, raising=False)

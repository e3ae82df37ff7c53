"""Pytest configuration and shared fixtures for httpclient-component tests."""

import pytest

from httpclient_component.testing import EXAMPLE_OPENAPI, RequestRecorder


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Auto-cleanup: Clear settings-related environment variables before each test.

    This prevents a developer's shell or .env file from leaking into settings tests.
    """
    import os

    test_prefixes = ("TEST_", "HTTPCLIENT_")

    for key in list(os.environ.keys()):
        if any(key.startswith(prefix) for prefix in test_prefixes):
            monkeypatch.delenv(key, raising=False)

    yield


@pytest.fixture
def example_openapi() -> str:
    """OpenAPI document with one ``app`` backend bound to GET /healthcheck."""
    return EXAMPLE_OPENAPI


@pytest.fixture
def recorder() -> RequestRecorder:
    """Mock network layer that records every request it receives."""
    return RequestRecorder()

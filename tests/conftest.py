"""Root pytest configuration for netstorage-http tests."""
import httpx
import pytest

from netstorage_http.client import NetStorageClient
from netstorage_http.settings import Settings

from .fakes.fake_netstorage import FakeNetStorage


# Keep tests independent of whatever the developer has exported
@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Automatically clear client environment variables."""
    for name in (
        "NETSTORAGE_HOST", "NETSTORAGE_KEY_NAME", "NETSTORAGE_KEY", "NETSTORAGE_SSL",
        "NETSTORAGE_VERBOSE", "NETSTORAGE_HTTP_TIMEOUT", "NETSTORAGE_HTTP_RETRY",
    ):
        monkeypatch.delenv(name, raising=False)


# Standardized test fixtures
@pytest.fixture
def settings():
    """Standard test settings."""
    return Settings(
        host="example-nsu.akamaihd.net",
        key_name="upload-user",
        key="abcdefghijklmnopqrstuvwxyz0123456789ABCDEFGHIJKLMN",
    )


@pytest.fixture
def service(settings):
    """Standard fake NetStorage service for testing."""
    return FakeNetStorage(settings)


@pytest.fixture
def client(settings, service):
    """Client wired to the fake service through httpx.MockTransport."""
    http = httpx.AsyncClient(transport=service.transport())
    return NetStorageClient(settings, http_client=http)

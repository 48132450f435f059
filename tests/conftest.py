"""Shared pytest fixtures for contentful-sync tests."""

import pytest
from dotenv import load_dotenv
from fakes import FakeStore

from contentful_sync.config import Config

load_dotenv()

CONFIG_ENV_VARS = (
    "CONTENTFUL_SPACE_ID",
    "CONTENTFUL_ENVIRONMENT",
    "CONTENTFUL_MANAGEMENT_TOKEN",
    "CONTENT_ROOT",
    "CONTENTFUL_DELETE_ALL",
    "CONTENTFUL_LOCALE",
    "CONTENTFUL_PAGE_SIZE",
    "CONTENTFUL_SYNC_DEBUG",
    "CONTENTFUL_SYNC_CONFIG",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the config layer reads."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def mock_config():
    """Create a Config instance for testing."""
    return Config(
        space_id="space123",
        access_token="CFPAT-test-token",
        environment_id="master",
    )


@pytest.fixture
def fake_store():
    """Fresh in-memory store with the default blog content types."""
    return FakeStore()

"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from transport.facebook.schemas import ClientConfig  # noqa: E402


APP_SECRET = "test_app_secret"
ACCESS_TOKEN = "test_page_token"
VERIFY_TOKEN = "test_verify_token"


@pytest.fixture
def client_config() -> ClientConfig:
    """Single-page configuration."""
    return ClientConfig(
        app_secret=APP_SECRET,
        access_token=ACCESS_TOKEN,
        verify_token=VERIFY_TOKEN,
    )


@pytest.fixture
def multi_page_config() -> ClientConfig:
    """No global token - page tokens come from a resolver."""
    return ClientConfig(
        app_secret=APP_SECRET,
        access_token="",
        verify_token=VERIFY_TOKEN,
    )

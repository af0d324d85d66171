"""
Root pytest configuration and fixtures for the Hustle Incognito SDK.

Provides common fixtures and test utilities for the SDK test suite.
"""

import os
from pathlib import Path
import sys

import pytest
import responses

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

BASE_URL = "https://api.test.emblemvault.ai"
CHAT_URL = f"{BASE_URL}/api/chat"


@pytest.fixture
def api_key():
    """Test API key."""
    return "test-api-key-12345"


@pytest.fixture
def base_url():
    """Test base URL."""
    return BASE_URL


@pytest.fixture
def chat_url():
    return CHAT_URL


@pytest.fixture
def messages():
    """A one-turn conversation."""
    return [{"role": "user", "content": "Hello"}]


@pytest.fixture
def scenario_a_body():
    """Text, message id and finish lines as the server sends them."""
    return (
        b'0:"Hello "\n'
        b'0:"world!"\n'
        b'f:{"messageId":"m1"}\n'
        b'e:{"finishReason":"stop","usage":{"promptTokens":10,"completionTokens":5}}\n'
    )


@pytest.fixture(autouse=True)
def clean_environment():
    """Clean environment variables before each test."""
    original_env = os.environ.copy()

    # Remove SDK environment variables
    for key in list(os.environ.keys()):
        if key.startswith("HUSTLE_"):
            del os.environ[key]

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def mock_requests():
    """Mock HTTP requests using responses library."""
    with responses.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def client(api_key, base_url):
    """Create a client pointed at the test endpoint."""
    from hustle_incognito import HustleIncognitoClient

    client = HustleIncognitoClient(api_key=api_key, hustle_api_url=base_url)
    yield client
    client.close()

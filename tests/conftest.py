"""Test configuration and fixtures."""

import os

TEST_SECRET = "test-secret-value"

# Read at import time by core.logging and the app lifespan
os.environ["ENVIRONMENT"] = "test"
os.environ["DISABLE_TRACING"] = "1"
os.environ["API_SECRET"] = TEST_SECRET

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from api.routes.transfers import get_gateway_factory  # noqa: E402
from core.dependencies import get_settings  # noqa: E402
from core.settings import Settings  # noqa: E402
from main import app  # noqa: E402
from tests.fakes import FakeConnector  # noqa: E402


@pytest.fixture(autouse=True)
def setup_test_environment():
    """Setup test environment variables before each test."""
    # Store original env vars
    original_env = dict(os.environ)

    os.environ.update(
        {
            "ENVIRONMENT": "test",
            "DISABLE_TRACING": "1",
            "API_SECRET": TEST_SECRET,
            "APP_NAME": "Test Token Sender",
        }
    )

    yield

    # Restore original env vars
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def mock_settings():
    return Settings(
        API_SECRET=TEST_SECRET,
        APP_NAME="Test Token Sender",
        ENVIRONMENT="test",
        CONFIRMATION_TIMEOUT_SECONDS=1.0,
        CONFIRMATION_POLL_SECONDS=0.01,
    )


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def fake_gateway(connector):
    return connector.gateway


@pytest.fixture
def auth_headers():
    return {"x-api-secret": TEST_SECRET}


@pytest.fixture
def payload():
    return {
        "private_key": "0x" + "11" * 32,
        "alchemy_key": "alchemy-test-credential",
        "token_contract": "0x" + "22" * 20,
        "to_address": "0x" + "3c" * 20,
        "amount": "1.5",
    }


@pytest.fixture
def client(mock_settings, connector):
    """Test client wired to fake settings and a fake chain gateway."""
    app.dependency_overrides[get_settings] = lambda: mock_settings
    app.dependency_overrides[get_gateway_factory] = lambda: connector

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()

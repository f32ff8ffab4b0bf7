"""API test fixtures - console app wired to a mocked backend and in-memory Valkey."""

import pytest
from starlette.testclient import TestClient

from api.app import build_services, create_app


# =============================================================================
# SERVICES
# =============================================================================


@pytest.fixture
def services(config, valkey):
    """Every console service, sharing the in-memory Valkey with token_store."""
    return build_services(config, valkey)


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(services):
    return create_app(services)


@pytest.fixture
def client(app, token_store):
    """Logged-in test client (backend token already stored)."""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def unauthed_client(app):
    """Test client before login (no backend token)."""
    return TestClient(app, raise_server_exceptions=False)

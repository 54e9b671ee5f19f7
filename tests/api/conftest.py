"""API test fixtures: TestClient over in-memory services and a fixed clock."""

from unittest.mock import Mock

import pytest
from starlette.testclient import TestClient

from api.app import build_services, create_app
from core.audit import AuditLogger
from tests.fakes import InMemoryLedgerRepository, InMemorySessionRepository


# =============================================================================
# SERVICES
# =============================================================================


@pytest.fixture
def services(config, clock):
    return build_services(
        InMemoryLedgerRepository(),
        InMemorySessionRepository(),
        Mock(spec=AuditLogger),
        config,
        clock=clock,
    )


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(services, config):
    """FastAPI app with request IDs, error handlers, and data/actions routes."""
    return create_app(services, config)


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def act(client):
    """POST an action; returns the response."""

    def _act(domain: str, action: str, **data):
        return client.post("/api/actions", json={"domain": domain, "action": action, "data": data})

    return _act

"""
Shared fixtures for integration tests.

Integration tests use the real gateway application, including its lifespan,
with HTTP-level mocking of the downstream service. They verify the full
request -> routing -> forwarding -> response cycle without a running
downstream service.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import respx
from fastapi.testclient import TestClient

from sofia_gateway.app import create_app
from tests.factories import DOWNSTREAM_URL, create_settings

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(scope="module")
def integration_client() -> Iterator[TestClient]:
    """
    Create test client with the real gateway application.

    Uses context manager to trigger lifespan events (client initialization).
    This client is shared across all tests in the module.
    """
    app = create_app(create_settings())
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def client(integration_client: TestClient) -> TestClient:
    """Alias for integration_client."""
    return integration_client


@pytest.fixture
def downstream() -> Iterator[respx.MockRouter]:
    """
    Mock the downstream service.

    Tests register the routes they expect; any unregistered downstream
    call fails the test.
    """
    with respx.mock(base_url=DOWNSTREAM_URL, assert_all_called=False) as router:
        yield router

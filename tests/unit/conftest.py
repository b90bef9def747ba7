"""
Shared fixtures for unit tests.

All external dependencies (downstream client, settings, app state) are mocked
to ensure tests run in isolation without I/O or network access.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from sofia_gateway.clients import DownstreamClient
from sofia_gateway.proxy import GatewayProxy
from sofia_gateway.routing import build_default_route_table
from tests.factories import DOWNSTREAM_URL, TEST_CONFIG_YAML, create_json_response, create_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Generator
    from pathlib import Path

    from fastapi import FastAPI

    from sofia_gateway.config import Settings
    from sofia_gateway.routing import RouteTable


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset settings cache before and after each test."""
    from sofia_gateway.config import clear_settings_cache  # noqa: PLC0415

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def test_config_file(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a temporary config file and point CONFIG_PATH at it."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(TEST_CONFIG_YAML)

    old_config_path = os.environ.get("CONFIG_PATH")
    os.environ["CONFIG_PATH"] = str(config_path)

    yield config_path

    if old_config_path:
        os.environ["CONFIG_PATH"] = old_config_path
    else:
        os.environ.pop("CONFIG_PATH", None)


@pytest.fixture
def settings() -> Settings:
    """Validated test settings."""
    return create_settings()


@pytest.fixture
def route_table() -> RouteTable:
    """The production routing table."""
    return build_default_route_table()


@pytest.fixture
def test_logger() -> logging.Logger:
    return logging.getLogger("sofia-gateway.tests")


@pytest.fixture
def mock_downstream_client() -> AsyncMock:
    """Create a mock downstream client answering 200 {"ok": true}."""
    client = AsyncMock(spec=DownstreamClient)
    client.service_name = "sofia_auth"
    client.base_url = DOWNSTREAM_URL
    client.url_for.side_effect = lambda path: f"{DOWNSTREAM_URL}{path}"
    client.forward.return_value = create_json_response(200, {"ok": True})
    client.health_check.return_value = "ok"
    return client


@pytest.fixture
def gateway_proxy(
    route_table: RouteTable,
    mock_downstream_client: AsyncMock,
    test_logger: logging.Logger,
) -> GatewayProxy:
    """GatewayProxy wired to the mock downstream client."""
    return GatewayProxy(route_table=route_table, client=mock_downstream_client, logger=test_logger)


@pytest.fixture
def test_app(
    settings: Settings,
    mock_downstream_client: AsyncMock,
    gateway_proxy: GatewayProxy,
) -> FastAPI:
    """Create the real app with the lifespan replaced and mock state injected."""
    from sofia_gateway.app import create_app  # noqa: PLC0415

    # Create a minimal lifespan that does nothing
    @asynccontextmanager
    async def mock_lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield

    app = create_app(settings)
    app.router.lifespan_context = mock_lifespan

    state = app.state.gateway
    state.downstream_client = mock_downstream_client
    state.proxy = gateway_proxy
    return app


@pytest.fixture
def test_client(test_app: FastAPI) -> Generator[TestClient, None, None]:
    """Test client that surfaces unhandled errors as 500 responses."""
    with TestClient(test_app, raise_server_exceptions=False) as client:
        yield client

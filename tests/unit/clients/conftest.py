"""Fixtures for client unit tests."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from tests.factories import DOWNSTREAM_URL

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from sofia_gateway.clients.downstream import DownstreamClient


@pytest.fixture
def mock_httpx_response() -> MagicMock:
    """Create a mock httpx response."""
    response = MagicMock(spec=httpx.Response)
    response.status_code = 200
    response.content = b"{}"
    response.json.return_value = {}
    return response


@pytest.fixture
def mock_httpx_client() -> AsyncMock:
    """Create a mock httpx.AsyncClient for testing client methods."""
    return AsyncMock(spec=httpx.AsyncClient)


@pytest.fixture
async def downstream_client(mock_httpx_client: AsyncMock) -> AsyncGenerator[DownstreamClient, None]:
    """Create a DownstreamClient with a mocked httpx client."""
    from sofia_gateway.clients.downstream import DownstreamClient  # noqa: PLC0415

    client = DownstreamClient(
        base_url=DOWNSTREAM_URL,
        timeout=5.0,
        service_name="sofia_auth",
        logger=logging.getLogger("sofia-gateway.tests.downstream"),
    )
    real_client = client.client
    # Replace the internal httpx client with our mock
    client.client = mock_httpx_client
    yield client
    await real_client.aclose()

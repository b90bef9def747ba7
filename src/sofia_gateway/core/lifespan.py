"""
Application lifecycle management.

Handles startup (client initialization) and shutdown (cleanup) events
for proper resource management.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sofia_gateway.clients import DownstreamClient
from sofia_gateway.logging import get_named_logger, setup_logging
from sofia_gateway.proxy import GatewayProxy

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

    from sofia_gateway.core.state import AppState


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Manage application lifecycle.

    Startup:
    - Initialize logging
    - Create the downstream HTTP client and the proxy
    - Log startup information

    Shutdown:
    - Log shutdown with uptime
    - Close the HTTP client
    """
    # === STARTUP ===
    state: AppState = app.state.gateway
    settings = state.settings

    logger = setup_logging(settings.server.log_level, settings.service.name)

    logger.info(
        "Service starting",
        extra={
            "service": settings.service.name,
            "version": settings.service.version,
            "host": settings.server.host,
            "port": settings.server.port,
            "routes": len(state.route_table),
        },
    )

    logger.info(
        "Initializing downstream client",
        extra={
            "downstream": settings.downstream.name,
            "url": settings.downstream.base_url,
            "timeout": settings.downstream.timeout_seconds,
        },
    )

    client = DownstreamClient(
        base_url=settings.downstream.base_url,
        timeout=settings.downstream.timeout_seconds,
        service_name=settings.downstream.name,
        logger=get_named_logger(settings.service.name, "downstream"),
    )
    state.downstream_client = client
    state.proxy = GatewayProxy(
        route_table=state.route_table,
        client=client,
        logger=get_named_logger(settings.service.name, "proxy"),
    )

    logger.info("Service ready to accept requests")

    try:
        yield  # Application runs here
    finally:
        # === SHUTDOWN ===
        logger.info(
            "Service shutting down",
            extra={
                "uptime_seconds": state.uptime_seconds,
                "uptime": state.uptime_formatted,
            },
        )

        state.proxy = None
        state.downstream_client = None
        await client.close()

        logger.info("Service shutdown complete")

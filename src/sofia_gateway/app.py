"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sofia_gateway.config import get_settings
from sofia_gateway.core.exceptions import register_exception_handlers
from sofia_gateway.core.lifespan import lifespan
from sofia_gateway.core.middleware import SecurityHeadersMiddleware
from sofia_gateway.core.state import AppState, attach_app_state
from sofia_gateway.logging import get_service_logger
from sofia_gateway.routers import health, info, proxy
from sofia_gateway.routing import build_default_route_table

if TYPE_CHECKING:
    from sofia_gateway.config import Settings
    from sofia_gateway.routing import RouteTable


# nosemgrep: no-default-parameter-values (injection points for tests)
def create_app(
    settings: Settings | None = None,
    route_table: RouteTable | None = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Configuration to use instead of the cached config.yaml settings
        route_table: Routing table to use instead of the default table

    Returns:
        Configured FastAPI instance with its own AppState
    """
    if settings is None:
        settings = get_settings()
    if route_table is None:
        route_table = build_default_route_table()

    # The gateway's surface is exactly /health, /info and the proxied routes.
    app = FastAPI(
        title=f"{settings.service.name} Service",
        description="API gateway for the SOF-IA legal clinic dashboard",
        version=settings.service.version,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    attach_app_state(app, AppState(settings=settings, route_table=route_table))

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    service_name = settings.service.name
    register_exception_handlers(app, lambda: get_service_logger(service_name))

    app.include_router(health.router, tags=["Operations"])
    app.include_router(info.router, tags=["Operations"])
    # Must stay last: matches every path and method.
    proxy.register_proxy_route(app)

    return app

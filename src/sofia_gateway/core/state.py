"""
Application state management.

Each FastAPI app owns one AppState, stored on ``app.state.gateway``.
Tracks uptime and holds the downstream client and proxy, which exist
only between startup and shutdown.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from fastapi import FastAPI

    from sofia_gateway.clients import DownstreamClient
    from sofia_gateway.config import Settings
    from sofia_gateway.proxy import GatewayProxy
    from sofia_gateway.routing import RouteTable


@dataclass
class AppState:
    """
    Runtime application state.

    Attributes:
        settings: Validated configuration for this app
        route_table: Routing table served by this app
        start_time: When the application started (UTC)
        _downstream_client: HTTP client for the downstream service (internal)
        _proxy: Request forwarder (internal)
    """

    settings: Settings
    route_table: RouteTable
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    _downstream_client: DownstreamClient | None = field(default=None, repr=False)
    _proxy: GatewayProxy | None = field(default=None, repr=False)

    @property
    def downstream_client(self) -> DownstreamClient:
        """Get the downstream client. Raises RuntimeError if not initialized."""
        if self._downstream_client is None:
            raise RuntimeError("Downstream client not initialized")
        return self._downstream_client

    @downstream_client.setter
    def downstream_client(self, value: DownstreamClient | None) -> None:
        self._downstream_client = value

    @property
    def proxy(self) -> GatewayProxy:
        """Get the request forwarder. Raises RuntimeError if not initialized."""
        if self._proxy is None:
            raise RuntimeError("Gateway proxy not initialized")
        return self._proxy

    @proxy.setter
    def proxy(self, value: GatewayProxy | None) -> None:
        self._proxy = value

    @property
    def uptime_seconds(self) -> float:
        """Calculate uptime in seconds."""
        delta = datetime.now(UTC) - self.start_time
        return delta.total_seconds()

    @property
    def uptime_formatted(self) -> str:
        """
        Format uptime as human-readable string.

        Returns:
            String like "2d 3h 15m 42s" or "15m 42s"
        """
        seconds = int(self.uptime_seconds)
        days, remainder = divmod(seconds, 86400)
        hours, remainder = divmod(remainder, 3600)
        minutes, secs = divmod(remainder, 60)

        parts = []
        if days > 0:
            parts.append(f"{days}d")
        if hours > 0:
            parts.append(f"{hours}h")
        if minutes > 0:
            parts.append(f"{minutes}m")
        parts.append(f"{secs}s")

        return " ".join(parts)


def attach_app_state(app: FastAPI, state: AppState) -> AppState:
    """Bind state to an app instance."""
    app.state.gateway = state
    return state


def get_app_state(request: Request) -> AppState:
    """
    Get the state of the app serving a request. Used as a FastAPI dependency.

    Raises:
        RuntimeError: If the app was built without state
    """
    state = getattr(request.app.state, "gateway", None)
    if state is None:
        raise RuntimeError("Application state not initialized")
    return state

"""
Catch-all proxy endpoint.

Registered last so /health and /info take precedence. Every other path,
for every method (WebDAV and other extension methods included), goes
through the routing table, which alone decides whether a method is allowed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sofia_gateway.core.state import get_app_state

if TYPE_CHECKING:
    from fastapi import FastAPI, Request, Response

PROXY_PATH = "/{full_path:path}"


async def proxy_request(request: Request) -> Response:
    """Forward the request to the downstream service."""
    state = get_app_state(request)
    return await state.proxy.handle(request)


def register_proxy_route(app: FastAPI) -> None:
    """Attach the catch-all route; must be called after every other router."""
    # methods=None: the route matches any HTTP method.
    app.add_route(PROXY_PATH, proxy_request, methods=None, include_in_schema=False)

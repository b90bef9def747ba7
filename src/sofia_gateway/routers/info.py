"""
Service information endpoint.

Exposes service configuration, downstream status and the routing table.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from sofia_gateway.config import get_safe_config
from sofia_gateway.core.state import AppState, get_app_state
from sofia_gateway.schemas import DownstreamInfo, InfoResponse, RouteInfo

router = APIRouter()


@router.get("/info", response_model=InfoResponse)
async def get_info(
    state: Annotated[AppState, Depends(get_app_state)],
) -> InfoResponse:
    """
    Get service information and configuration.

    Returns:
        Service metadata, downstream health, and every route entry
    """
    settings = state.settings
    downstream_status = await state.downstream_client.health_check()

    routes = [
        RouteInfo(
            group=group.name,
            kind="catch_all" if entry.is_catch_all else "exact",
            methods=sorted(entry.methods) if entry.methods is not None else None,
            pattern=entry.pattern,
            target=entry.target,
        )
        for group, entry in state.route_table.entries()
    ]

    return InfoResponse(
        service=settings.service.name,
        version=settings.service.version,
        uptime=state.uptime_formatted,
        uptime_seconds=state.uptime_seconds,
        downstream=DownstreamInfo(
            name=settings.downstream.name,
            url=settings.downstream.base_url,
            status=downstream_status,
            timeout_seconds=settings.downstream.timeout_seconds,
        ),
        routes=routes,
        config=get_safe_config(settings),
    )

"""
Health check endpoint.

Reports that the gateway process is up. Never touches the downstream
service, so container probes stay green while the backend restarts.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from sofia_gateway.core.state import AppState, get_app_state
from sofia_gateway.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(
    state: Annotated[AppState, Depends(get_app_state)],
) -> HealthResponse:
    """Always healthy while the process is serving requests."""
    return HealthResponse(status="ok", service=state.settings.service.name)

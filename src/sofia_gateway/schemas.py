"""
Pydantic response models for the gateway's own endpoints.

Proxied responses are relayed untouched and have no model.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Envelope for gateway-generated errors."""

    success: bool
    """Always False for errors."""

    message: str
    """Human-readable error description."""


class HealthResponse(BaseModel):
    """Response model for GET /health endpoint."""

    status: Literal["ok"]
    service: str


class RouteInfo(BaseModel):
    """One routing table entry, as listed by /info."""

    group: str
    kind: Literal["exact", "catch_all"]
    methods: list[str] | None
    """Allowed methods, or None for any method."""

    pattern: str
    target: str


class DownstreamInfo(BaseModel):
    """Downstream service summary for /info endpoint."""

    name: str
    url: str
    status: str
    timeout_seconds: float


class InfoResponse(BaseModel):
    """Response model for GET /info endpoint."""

    service: str
    """Service name."""

    version: str
    """Service version."""

    uptime: str
    """Human-readable uptime."""

    uptime_seconds: float

    downstream: DownstreamInfo
    """Downstream service and its current health."""

    routes: list[RouteInfo]
    """Full routing table in resolution order."""

    config: dict[str, Any]
    """Configuration with sensitive values redacted."""

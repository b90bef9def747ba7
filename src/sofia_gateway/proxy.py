"""
Request forwarder.

Drives one inbound request through the gateway lifecycle:

    ROUTING -> FORWARDING -> AWAITING_RESPONSE -> REPLYING

with terminal failures ROUTE_NOT_FOUND (from ROUTING) and UPSTREAM_ERROR
(from FORWARDING or AWAITING_RESPONSE). There is no retry state.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from fastapi.responses import JSONResponse, Response

from sofia_gateway.core.exceptions import RouteNotFoundError, UpstreamUnavailableError
from sofia_gateway.forwarding import (
    ForwardedRequest,
    JsonBody,
    build_forward_headers,
    encode_forward_body,
    negotiate_body,
    with_query,
)
from sofia_gateway.logging import bind_request_logger

if TYPE_CHECKING:
    import logging

    from fastapi import Request

    from sofia_gateway.clients import DownstreamClient
    from sofia_gateway.forwarding import ForwardedResponse
    from sofia_gateway.logging import RequestLogger
    from sofia_gateway.routing import RouteTable

TEXT_MEDIA_TYPE = "text/plain"


class ProxyStage(StrEnum):
    """Lifecycle stages of a proxied request."""

    ROUTING = "routing"
    FORWARDING = "forwarding"
    AWAITING_RESPONSE = "awaiting_response"
    REPLYING = "replying"
    ROUTE_NOT_FOUND = "route_not_found"
    UPSTREAM_ERROR = "upstream_error"


_TRANSITIONS: dict[ProxyStage, frozenset[ProxyStage]] = {
    ProxyStage.ROUTING: frozenset({ProxyStage.FORWARDING, ProxyStage.ROUTE_NOT_FOUND}),
    ProxyStage.FORWARDING: frozenset({ProxyStage.AWAITING_RESPONSE, ProxyStage.UPSTREAM_ERROR}),
    ProxyStage.AWAITING_RESPONSE: frozenset({ProxyStage.REPLYING, ProxyStage.UPSTREAM_ERROR}),
    ProxyStage.REPLYING: frozenset(),
    ProxyStage.ROUTE_NOT_FOUND: frozenset(),
    ProxyStage.UPSTREAM_ERROR: frozenset(),
}


@dataclass
class ProxyContext:
    """Transient per-request state; discarded after the reply."""

    method: str
    path: str
    query: str
    stage: ProxyStage = ProxyStage.ROUTING
    started_at: float = field(default_factory=time.perf_counter)
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def display_path(self) -> str:
        """Inbound path as the caller sent it, query string included."""
        return with_query(self.path, self.query)

    @property
    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self.started_at) * 1000, 2)

    def advance(self, stage: ProxyStage) -> None:
        """
        Move to the next stage.

        Raises:
            RuntimeError: If the transition is not part of the lifecycle
        """
        if stage not in _TRANSITIONS[self.stage]:
            raise RuntimeError(f"Illegal proxy transition {self.stage} -> {stage}")
        self.stage = stage


class GatewayProxy:
    """
    Resolves, forwards and replies for every proxied request.

    Holds no per-request state; one instance serves all concurrent requests.
    """

    def __init__(
        self,
        route_table: RouteTable,
        client: DownstreamClient,
        logger: logging.Logger,
    ) -> None:
        self.route_table = route_table
        self.client = client
        self.logger = logger

    async def handle(self, request: Request) -> Response:
        """
        Proxy one inbound request.

        Args:
            request: Inbound request

        Returns:
            Downstream status code with its JSON or raw text body

        Raises:
            RouteNotFoundError: No routing table entry matches
            UpstreamUnavailableError: Downstream unreachable or timed out
            InvalidRequestBodyError: Inbound JSON body is malformed
        """
        context = ProxyContext(
            method=request.method,
            path=request.url.path,
            query=request.url.query,
        )
        log = bind_request_logger(
            self.logger,
            context.request_id,
            method=context.method,
            path=context.path,
        )

        match = self.route_table.resolve(context.method, context.path)
        if match is None:
            self._enter(context, ProxyStage.ROUTE_NOT_FOUND, log)
            raise RouteNotFoundError(context.method, context.display_path)

        log = log.bind(route_group=match.group.name, route_kind=match.kind)
        self._enter(context, ProxyStage.FORWARDING, log)
        client_host = request.client.host if request.client else None
        forwarded = ForwardedRequest(
            method=context.method,
            path=with_query(match.target_path, context.query),
            headers=build_forward_headers(request.headers, client_host),
            body=encode_forward_body(await request.body(), request.headers.get("content-type")),
        )

        log.info(
            "Proxying request",
            extra={"target_url": self.client.url_for(forwarded.path)},
        )

        self._enter(context, ProxyStage.AWAITING_RESPONSE, log)
        try:
            downstream = await self.client.forward(forwarded)
        except UpstreamUnavailableError:
            self._enter(context, ProxyStage.UPSTREAM_ERROR, log)
            raise

        self._enter(context, ProxyStage.REPLYING, log)
        return self._reply(context, downstream, log)

    def _enter(self, context: ProxyContext, stage: ProxyStage, log: RequestLogger) -> None:
        context.advance(stage)
        log.debug("Proxy stage", extra={"stage": str(stage)})

    def _reply(
        self,
        context: ProxyContext,
        downstream: ForwardedResponse,
        log: RequestLogger,
    ) -> Response:
        body = negotiate_body(downstream.content)

        log.info(
            "Proxy response",
            extra={
                "status_code": downstream.status_code,
                "body_kind": "json" if isinstance(body, JsonBody) else "text",
                "duration_ms": context.elapsed_ms,
            },
        )

        if isinstance(body, JsonBody):
            return JSONResponse(status_code=downstream.status_code, content=body.value)
        return Response(
            content=body.raw,
            status_code=downstream.status_code,
            media_type=TEXT_MEDIA_TYPE,
        )

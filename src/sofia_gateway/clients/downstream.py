"""
HTTP client for the downstream service.

Sends one outbound request per routed call and buffers the full
response. Transport failures are translated to UpstreamUnavailableError;
nothing is retried.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import httpx

from sofia_gateway.core.exceptions import UpstreamUnavailableError
from sofia_gateway.forwarding import ForwardedResponse

if TYPE_CHECKING:
    import logging

    from sofia_gateway.forwarding import ForwardedRequest

# Connect timeout never exceeds the overall request timeout.
MAX_CONNECT_TIMEOUT_SECONDS = 5.0


class DownstreamClient:
    """
    Client for the single fixed downstream service.

    One instance owns one connection pool; create it at startup and
    close it at shutdown.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float,
        service_name: str,
        logger: logging.Logger,
    ) -> None:
        """
        Initialize the downstream client.

        Args:
            base_url: Base URL for the service (e.g., "http://sofia_auth:3001")
            timeout: Request timeout in seconds
            service_name: Service identifier used in logs and error messages
            logger: Logger for transport failures
        """
        self.base_url = base_url
        self.service_name = service_name
        self.timeout = timeout
        self.logger = logger

        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout, connect=min(timeout, MAX_CONNECT_TIMEOUT_SECONDS)),
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def forward(self, request: ForwardedRequest) -> ForwardedResponse:
        """
        Send a forwarded request and buffer the response.

        Any downstream status code is a successful forward; only transport
        failures raise.

        Args:
            request: Outbound request

        Returns:
            Downstream status code and body

        Raises:
            UpstreamUnavailableError: Connection failure, protocol error or timeout
        """
        url = self.url_for(request.path)

        try:
            response = await self.client.request(
                request.method,
                request.path,
                headers=request.headers,
                content=request.body,
            )
        except httpx.TimeoutException as e:
            self.logger.warning(
                "Downstream timeout",
                extra={
                    "downstream": self.service_name,
                    "url": url,
                    "timeout_seconds": self.timeout,
                    "error_type": type(e).__name__,
                },
            )
            raise UpstreamUnavailableError(self.service_name, reason="timeout", url=url) from e
        except httpx.RequestError as e:
            self.logger.warning(
                "Downstream unavailable",
                extra={
                    "downstream": self.service_name,
                    "url": url,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
            )
            raise UpstreamUnavailableError(
                self.service_name, reason=type(e).__name__, url=url
            ) from e

        return ForwardedResponse(status_code=response.status_code, content=response.content)

    async def health_check(self) -> str:
        """
        Check downstream health.

        Returns:
            Status string reported by the service, or "unavailable", "error", "unknown"
        """
        status = "unknown"

        try:
            response = await self.client.get("/health")
            response.raise_for_status()
            data = response.json()
            # External API response - fallback is intentional for malformed responses
            if isinstance(data, dict) and data.get("status") is not None:
                status = str(data["status"])
        except (httpx.ConnectError, httpx.TimeoutException):
            status = "unavailable"
            self.logger.warning(
                "Downstream health check failed: connection error",
                extra={"downstream": self.service_name},
            )
        except httpx.HTTPStatusError as e:
            status = "unavailable" if e.response.status_code == 503 else "error"
            self.logger.warning(
                "Downstream health check failed: HTTP status error",
                extra={
                    "downstream": self.service_name,
                    "status_code": e.response.status_code,
                },
            )
        except (httpx.HTTPError, json.JSONDecodeError) as e:
            status = "error"
            self.logger.warning(
                "Downstream health check failed",
                extra={"downstream": self.service_name, "error_type": type(e).__name__},
            )

        return status

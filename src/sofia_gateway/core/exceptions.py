"""
Gateway error taxonomy and exception handlers.

Every gateway-generated failure is rendered as the
``{"success": false, "message": ...}`` envelope.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from fastapi.responses import JSONResponse

from sofia_gateway.schemas import ErrorResponse

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine
    from logging import Logger
    from typing import Any

    from fastapi import FastAPI, Request
    from starlette.requests import Request as StarletteRequest

    ExceptionHandler = Callable[
        [StarletteRequest, Exception],
        Coroutine[Any, Any, JSONResponse],
    ]
    GatewayErrorHandler = Callable[[Request, "GatewayError"], Coroutine[Any, Any, JSONResponse]]
    UnhandledExceptionHandler = Callable[[Request, Exception], Coroutine[Any, Any, JSONResponse]]
    LoggerFactory = Callable[[], Logger]


GATEWAY_ERROR_MESSAGE = "Error en el gateway"


class GatewayError(Exception):
    """
    Base exception for gateway errors.

    Attributes:
        error: Machine-readable error code (logged, not returned)
        message: Human-readable description returned to the caller
        status_code: HTTP status code
        details: Additional context for logs
    """

    # nosemgrep: no-default-parameter-values (optional details for exceptions)
    def __init__(
        self,
        error: str,
        message: str,
        status_code: int,
        details: dict[str, object] | None = None,
    ) -> None:
        self.error = error
        self.message = message
        self.status_code = status_code
        if details is None:
            self.details: dict[str, object] = {}
        else:
            self.details = details
        super().__init__(message)


class RouteNotFoundError(GatewayError):
    """No routing table entry matches the request method and path."""

    def __init__(self, method: str, path: str) -> None:
        super().__init__(
            error="route_not_found",
            message=f"Ruta no encontrada: {method} {path}",
            status_code=404,
            details={"method": method, "path": path},
        )


class UpstreamUnavailableError(GatewayError):
    """
    The downstream service could not be reached.

    Covers connection refused/reset, protocol errors and timeouts.
    Never retried.
    """

    def __init__(self, target: str, reason: str, url: str) -> None:
        super().__init__(
            error="upstream_unavailable",
            message=f"Error al conectar con el servicio {target}",
            status_code=500,
            details={"target": target, "reason": reason, "url": url},
        )


class GatewayInternalError(GatewayError):
    """Unexpected failure inside the gateway's forwarding path."""

    # nosemgrep: no-default-parameter-values (optional details for exceptions)
    def __init__(self, error: str, details: dict[str, object] | None = None) -> None:
        super().__init__(
            error=error,
            message=GATEWAY_ERROR_MESSAGE,
            status_code=500,
            details=details,
        )


class InvalidRequestBodyError(GatewayInternalError):
    """Inbound JSON body could not be parsed for forwarding."""

    def __init__(self, reason: str) -> None:
        super().__init__(error="invalid_request_body", details={"reason": reason})


def error_envelope(status_code: int, message: str) -> JSONResponse:
    """Build the standard error envelope response."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(success=False, message=message).model_dump(),
    )


def create_exception_handlers(
    logger_factory: LoggerFactory,
) -> tuple[GatewayErrorHandler, UnhandledExceptionHandler]:
    """
    Create gateway and unhandled exception handlers for a logger factory.

    Args:
        logger_factory: Callable returning the service logger

    Returns:
        Tuple of (gateway_error_handler, unhandled_exception_handler)
    """

    async def gateway_error_handler(
        request: Request,
        exc: GatewayError,
    ) -> JSONResponse:
        """Handle GatewayError exceptions."""
        logger = logger_factory()
        logger.warning(
            "Gateway error",
            extra={
                "error_code": exc.error,
                "error_message": exc.message,
                "status_code": exc.status_code,
                "details": exc.details,
                "method": request.method,
                "path": str(request.url.path),
            },
        )
        return error_envelope(exc.status_code, exc.message)

    async def unhandled_exception_handler(
        request: Request,
        _exc: Exception,
    ) -> JSONResponse:
        """
        Handle unexpected exceptions.

        Logs full traceback but returns the generic envelope to the client.
        """
        logger = logger_factory()
        logger.exception(
            "Unhandled exception",
            extra={
                "path": str(request.url.path),
                "method": request.method,
            },
        )
        return error_envelope(500, GATEWAY_ERROR_MESSAGE)

    return gateway_error_handler, unhandled_exception_handler


def register_exception_handlers(app: FastAPI, logger_factory: LoggerFactory) -> None:
    """Register all exception handlers on the app."""
    gateway_error_handler, unhandled_exception_handler = create_exception_handlers(logger_factory)
    # Cast to expected FastAPI handler type - our more specific signature is compatible
    app.add_exception_handler(
        GatewayError,
        cast("ExceptionHandler", gateway_error_handler),
    )
    app.add_exception_handler(Exception, unhandled_exception_handler)

"""
Outbound request construction and downstream body negotiation.

Pure helpers with no I/O, used by the proxy between routing and replying.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sofia_gateway.core.exceptions import InvalidRequestBodyError

if TYPE_CHECKING:
    from collections.abc import Mapping

FORWARDED_CONTENT_TYPE = "application/json"

# The only headers ever sent downstream, in this order.
FORWARDED_HEADER_NAMES: tuple[str, ...] = (
    "content-type",
    "authorization",
    "user-agent",
    "x-forwarded-for",
)


@dataclass(frozen=True)
class ForwardedRequest:
    """Request sent to the downstream service."""

    method: str
    path: str
    """Downstream path, including the inbound query string when present."""

    headers: dict[str, str]
    body: bytes | None


@dataclass(frozen=True)
class ForwardedResponse:
    """Fully buffered downstream response."""

    status_code: int
    content: bytes


@dataclass(frozen=True)
class JsonBody:
    """Downstream body that parsed as JSON."""

    value: Any


@dataclass(frozen=True)
class TextBody:
    """Downstream body relayed verbatim."""

    raw: bytes


NegotiatedBody = JsonBody | TextBody


def build_forward_headers(
    inbound_headers: Mapping[str, str],
    client_host: str | None,
) -> dict[str, str]:
    """
    Build the outbound header set from the fixed allow-list.

    Missing inbound values are sent as empty strings so the header set
    is identical for every request.

    Args:
        inbound_headers: Case-insensitive inbound headers
        client_host: Caller address, if known

    Returns:
        Outbound headers keyed by FORWARDED_HEADER_NAMES
    """
    return {
        "content-type": FORWARDED_CONTENT_TYPE,
        "authorization": inbound_headers.get("authorization") or "",
        "user-agent": inbound_headers.get("user-agent") or "",
        "x-forwarded-for": client_host or "",
    }


def is_json_content_type(content_type: str | None) -> bool:
    """Whether a Content-Type header denotes a JSON payload."""
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == FORWARDED_CONTENT_TYPE or media_type.endswith("+json")


def _reject_constant(name: str) -> float:
    raise ValueError(f"Invalid JSON constant: {name}")


def _finite_float(literal: str) -> float:
    value = float(literal)
    if not math.isfinite(value):
        raise ValueError(f"JSON number out of float range: {literal}")
    return value


def _loads(raw: bytes) -> Any:
    """Parse JSON that can be re-encoded unchanged; non-finite numbers raise ValueError."""
    return json.loads(raw, parse_constant=_reject_constant, parse_float=_finite_float)


def encode_forward_body(raw: bytes, content_type: str | None) -> bytes | None:
    """
    Re-serialise an inbound JSON body for the downstream request.

    Only non-empty JSON objects and arrays are forwarded. Bodies with a
    non-JSON content type are not forwarded at all.

    Args:
        raw: Inbound body bytes
        content_type: Inbound Content-Type header

    Returns:
        Compact JSON bytes, or None when no body should be sent

    Raises:
        InvalidRequestBodyError: If a JSON-typed body is malformed or not
            an object or array
    """
    if not raw or not is_json_content_type(content_type):
        return None

    try:
        value = _loads(raw)
    except ValueError as e:
        raise InvalidRequestBodyError(reason=str(e)) from e

    if not isinstance(value, dict | list):
        raise InvalidRequestBodyError(reason=f"expected object or array, got {type(value).__name__}")

    if not value:
        return None

    return json.dumps(value, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def negotiate_body(content: bytes) -> NegotiatedBody:
    """
    Classify a buffered downstream body.

    Returns:
        JsonBody when the content is valid JSON with finite numbers, TextBody otherwise
    """
    try:
        value = _loads(content)
    except ValueError:
        # Non-JSON downstream bodies are legitimate; relay them as-is.
        return TextBody(raw=content)
    return JsonBody(value=value)


def with_query(path: str, query: str) -> str:
    """Append a raw query string to a path."""
    if not query:
        return path
    return f"{path}?{query}"

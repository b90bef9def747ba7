"""Tests for outbound request construction and body negotiation."""

from __future__ import annotations

import json

import pytest

from sofia_gateway.core.exceptions import GATEWAY_ERROR_MESSAGE, InvalidRequestBodyError
from sofia_gateway.forwarding import (
    FORWARDED_HEADER_NAMES,
    JsonBody,
    TextBody,
    build_forward_headers,
    encode_forward_body,
    is_json_content_type,
    negotiate_body,
    with_query,
)


@pytest.mark.unit
class TestBuildForwardHeaders:
    """Tests for the fixed outbound header allow-list."""

    def test_allow_listed_headers_are_copied(self) -> None:
        headers = build_forward_headers(
            {
                "authorization": "Bearer abc",
                "user-agent": "Mozilla/5.0",
                "content-type": "text/plain",
            },
            "10.0.0.7",
        )

        assert headers == {
            "content-type": "application/json",
            "authorization": "Bearer abc",
            "user-agent": "Mozilla/5.0",
            "x-forwarded-for": "10.0.0.7",
        }

    def test_other_headers_are_dropped(self) -> None:
        """Cookies, hosts and custom headers never reach the downstream service."""
        headers = build_forward_headers(
            {"cookie": "session=1", "host": "gateway", "x-custom": "1"},
            "10.0.0.7",
        )

        assert tuple(headers) == FORWARDED_HEADER_NAMES

    def test_missing_values_are_empty(self) -> None:
        headers = build_forward_headers({}, None)

        assert headers["authorization"] == ""
        assert headers["user-agent"] == ""
        assert headers["x-forwarded-for"] == ""
        assert headers["content-type"] == "application/json"


@pytest.mark.unit
class TestEncodeForwardBody:
    """Tests for inbound body re-serialisation."""

    def test_object_body_is_compacted(self) -> None:
        raw = b'{ "nombre" : "Ana",\n "semestre": 8 }'

        body = encode_forward_body(raw, "application/json")

        assert body == b'{"nombre":"Ana","semestre":8}'

    def test_array_body_is_forwarded(self) -> None:
        body = encode_forward_body(b"[1, 2]", "application/json; charset=utf-8")

        assert body == b"[1,2]"

    def test_non_ascii_is_preserved_as_utf8(self) -> None:
        body = encode_forward_body('{"área": "Penal"}'.encode(), "application/json")

        assert body is not None
        assert json.loads(body) == {"área": "Penal"}
        assert "área".encode() in body

    @pytest.mark.parametrize("raw", [b"", b"{}", b"[]"])
    def test_empty_body_is_not_forwarded(self, raw: bytes) -> None:
        assert encode_forward_body(raw, "application/json") is None

    @pytest.mark.parametrize("content_type", [None, "text/plain", "application/x-www-form-urlencoded"])
    def test_non_json_content_type_is_not_forwarded(self, content_type: str | None) -> None:
        assert encode_forward_body(b"nombre=Ana", content_type) is None

    @pytest.mark.parametrize(
        "raw",
        [b"{not json", b"\xff\xfe", b"NaN", b"42", b'"text"', b'{"x": 1e400}'],
    )
    def test_invalid_json_raises_gateway_error(self, raw: bytes) -> None:
        """Malformed or scalar JSON bodies are gateway-internal errors."""
        with pytest.raises(InvalidRequestBodyError) as exc_info:
            encode_forward_body(raw, "application/json")

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == GATEWAY_ERROR_MESSAGE


@pytest.mark.unit
class TestIsJsonContentType:
    @pytest.mark.parametrize(
        ("content_type", "expected"),
        [
            ("application/json", True),
            ("Application/JSON; charset=utf-8", True),
            ("application/vnd.api+json", True),
            ("text/html", False),
            ("", False),
            (None, False),
        ],
    )
    def test_detection(self, content_type: str | None, expected: bool) -> None:
        assert is_json_content_type(content_type) is expected


@pytest.mark.unit
class TestNegotiateBody:
    """Tests for the JSON-or-text classification of downstream bodies."""

    @pytest.mark.parametrize(
        "payload",
        [{"total": 5}, [1, "a", None], "texto", 0, None, True, {"x": 1e300}],
    )
    def test_valid_json_is_json_body(self, payload: object) -> None:
        result = negotiate_body(json.dumps(payload).encode())

        assert result == JsonBody(value=payload)

    @pytest.mark.parametrize(
        "content",
        [
            b"",
            b"OK",
            b"<html>Bad Gateway</html>",
            b"\x80\x81binary",
            b'{"a": 1',
            b"NaN",
            b'{"x":1e400}',
            b"[-1e999]",
        ],
    )
    def test_non_json_is_text_body_with_identical_bytes(self, content: bytes) -> None:
        result = negotiate_body(content)

        assert isinstance(result, TextBody)
        assert result.raw == content


@pytest.mark.unit
class TestWithQuery:
    def test_no_query(self) -> None:
        assert with_query("/api/citas", "") == "/api/citas"

    def test_query_appended_verbatim(self) -> None:
        assert with_query("/api/citas", "fecha=2024-05-01&estado=pendiente") == (
            "/api/citas?fecha=2024-05-01&estado=pendiente"
        )

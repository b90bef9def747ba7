"""
Test data factories for generating test fixtures.

Provides reusable functions for creating configuration, settings and
downstream responses with consistent, predictable outputs.
"""

from __future__ import annotations

import json
from typing import Any

from sofia_gateway.config import Settings
from sofia_gateway.forwarding import ForwardedResponse

DOWNSTREAM_NAME = "sofia_auth"
DOWNSTREAM_URL = "http://sofia_auth:3001"

TEST_CONFIG_YAML = """
service:
  name: "sofia-gateway"
  version: "1.0.0"

downstream:
  name: "sofia_auth"
  host: "sofia_auth"
  port: 3001
  timeout_seconds: 5.0

server:
  host: "0.0.0.0"
  port: 3000
  log_level: "info"
  cors_origins:
    - "*"
"""


def create_config_dict() -> dict[str, Any]:
    """Create a complete, valid configuration mapping."""
    return {
        "service": {"name": "sofia-gateway", "version": "1.0.0"},
        "downstream": {
            "name": DOWNSTREAM_NAME,
            "host": "sofia_auth",
            "port": 3001,
            "timeout_seconds": 5.0,
        },
        "server": {
            "host": "0.0.0.0",
            "port": 3000,
            "log_level": "info",
            "cors_origins": ["*"],
        },
    }


def create_settings() -> Settings:
    """Create validated test settings."""
    return Settings(**create_config_dict())


def create_json_response(status_code: int, payload: Any) -> ForwardedResponse:
    """Create a buffered downstream response with a JSON body."""
    return ForwardedResponse(status_code=status_code, content=json.dumps(payload).encode("utf-8"))


def concrete_path(pattern: str, value: str) -> str:
    """Replace every ``:param`` segment of a pattern with a value."""
    return "/".join(value if segment.startswith(":") else segment for segment in pattern.split("/"))

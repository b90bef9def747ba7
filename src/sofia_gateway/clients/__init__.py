"""HTTP clients for downstream services."""

from sofia_gateway.clients.downstream import DownstreamClient

__all__ = [
    "DownstreamClient",
]

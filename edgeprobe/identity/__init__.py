"""Identity builder: impersonating HTTP clients bound to egress nodes."""

from edgeprobe.identity.builder import (
    NAVIGATION_HEADERS,
    FetchResult,
    IdentityBuilder,
    IdentityClient,
    validate_node_address,
)

__all__ = [
    "NAVIGATION_HEADERS",
    "FetchResult",
    "IdentityBuilder",
    "IdentityClient",
    "validate_node_address",
]

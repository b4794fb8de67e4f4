"""Identity builder: one-shot impersonating HTTP clients bound to a node.

``IdentityBuilder.build(profile_name, node)`` resolves the profile, then
creates a ``curl_cffi`` async session that presents the profile's TLS/HTTP2
fingerprint, sends a fixed set of navigation headers and routes all
traffic through *node*. The returned :class:`IdentityClient` performs
exactly one request and closes its session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urlparse

from curl_cffi import CurlError
from curl_cffi.requests import AsyncSession

from edgeprobe.browser.fingerprint import ACCEPT_LANGUAGE
from edgeprobe.config.profiles import IdentityProfile, IdentityRegistry
from edgeprobe.middleware.error_handler import ClientBuildError, NetworkError
from edgeprobe.proxy.types import EgressNode

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMES = frozenset({"http", "https", "socks4", "socks5", "socks5h"})

NAVIGATION_HEADERS: dict[str, str] = {
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,"
        "image/webp,image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7"
    ),
    "Accept-Language": ACCEPT_LANGUAGE,
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-User": "?1",
    "Sec-Fetch-Dest": "document",
}


@dataclass(frozen=True)
class FetchResult:
    """Status and decoded body of one response."""

    status: int
    body: str


def validate_node_address(address: str) -> None:
    """Raise :class:`ClientBuildError` unless *address* is a usable proxy URL."""
    parsed = urlparse(address)
    if parsed.scheme.lower() not in SUPPORTED_SCHEMES:
        raise ClientBuildError(f"Unsupported proxy scheme in {address!r}", node=address)
    if not parsed.hostname:
        raise ClientBuildError(f"Proxy address has no host: {address!r}", node=address)
    try:
        port = parsed.port
    except ValueError as exc:
        raise ClientBuildError(f"Invalid proxy port in {address!r}", node=address) from exc
    if port is None:
        raise ClientBuildError(f"Proxy address has no port: {address!r}", node=address)


class IdentityClient:
    """Single-use impersonating client routed through one egress node."""

    def __init__(self, session: AsyncSession, profile: IdentityProfile, node: EgressNode) -> None:
        self._session = session
        self.profile = profile
        self.node = node
        self._used = False

    async def fetch(self, url: str) -> FetchResult:
        """GET *url* once and close the session.

        Raises:
            NetworkError: The transport failed (connect, proxy, TLS, timeout).
            ClientBuildError: The client was already used.
        """
        if self._used:
            raise ClientBuildError("Identity client is single-use", node=self.node.address)
        self._used = True

        try:
            response = await self._session.get(url)
            return FetchResult(status=response.status_code, body=response.text)
        except CurlError as exc:
            raise NetworkError(str(exc), node=self.node.address) from exc
        finally:
            await self._session.close()


class IdentityBuilder:
    """Creates :class:`IdentityClient` instances from the profile registry."""

    def __init__(self, registry: IdentityRegistry, *, timeout_seconds: float = 30.0) -> None:
        self._registry = registry
        self._timeout = timeout_seconds

    def build(self, profile_name: str, node: EgressNode) -> IdentityClient:
        """Build a client for *profile_name* routed exclusively through *node*.

        Raises:
            ClientBuildError: Unknown profile in a strict registry, malformed
                node address, or the session could not be constructed.
        """
        profile = self._registry.resolve(profile_name)
        validate_node_address(node.address)

        try:
            session = AsyncSession(
                impersonate=profile.impersonate,
                headers=NAVIGATION_HEADERS,
                proxy=node.address,
                timeout=self._timeout,
            )
        except (CurlError, TypeError, ValueError) as exc:
            raise ClientBuildError(
                f"Failed to build TLS client: {exc}", node=node.address
            ) from exc

        logger.debug("Built %s client via %s", profile.impersonate, node.protocol)
        return IdentityClient(session, profile, node)

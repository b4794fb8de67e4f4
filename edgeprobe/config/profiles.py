"""Identity profile models and the validated profile registry.

A profile maps a short name (e.g. ``desktop``) to an impersonation identity:
a curl_cffi browser target that fixes the TLS/HTTP2 handshake signature.
The registry is loaded once at startup and read-only afterwards.
"""

from __future__ import annotations

import logging

from curl_cffi.requests import BrowserType
from pydantic import BaseModel

from edgeprobe.middleware.error_handler import UnknownProfileError

logger = logging.getLogger(__name__)

DEFAULT_IMPERSONATION = "chrome131"

# Identity strings used by older profile files
LEGACY_ALIASES: dict[str, str] = {
    "chrome_130": "chrome131",
    "chrome_124": "chrome124",
    "safari_16": "safari15_5",
    "safari_17": "safari17_0",
}

KNOWN_TARGETS: frozenset[str] = frozenset(b.value for b in BrowserType)


def normalize_identity(identity: str) -> str:
    """Map a configured identity string to a curl_cffi impersonation target.

    Raises ``ValueError`` for identities curl_cffi does not know.
    """
    target = LEGACY_ALIASES.get(identity, identity)
    if target not in KNOWN_TARGETS:
        raise ValueError(f"Unknown impersonation identity '{identity}'")
    return target


class IdentityProfile(BaseModel):
    """A named impersonation identity."""

    name: str
    impersonate: str


DEFAULT_PROFILE = IdentityProfile(name="default", impersonate=DEFAULT_IMPERSONATION)


class IdentityRegistry:
    """Explicit mapping of profile names to identities.

    Unknown names fall back to :data:`DEFAULT_PROFILE` with a warning. With
    ``strict=True`` an unknown name raises :class:`UnknownProfileError`
    instead.
    """

    def __init__(self, profiles: dict[str, str], *, strict: bool = False) -> None:
        self._strict = strict
        self._profiles: dict[str, IdentityProfile] = {
            name: IdentityProfile(name=name, impersonate=normalize_identity(identity))
            for name, identity in profiles.items()
        }

    def __contains__(self, name: object) -> bool:
        return name in self._profiles

    def names(self) -> list[str]:
        return sorted(self._profiles)

    def resolve(self, name: str) -> IdentityProfile:
        profile = self._profiles.get(name)
        if profile is not None:
            return profile
        if self._strict:
            raise UnknownProfileError(f"Profile not found: {name}", profile=name)
        logger.warning("Profile '%s' not found, using default identity %s", name, DEFAULT_IMPERSONATION)
        return DEFAULT_PROFILE

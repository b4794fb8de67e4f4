"""Configuration module: settings and identity profiles."""

from edgeprobe.config.profiles import (
    DEFAULT_IMPERSONATION,
    DEFAULT_PROFILE,
    IdentityProfile,
    IdentityRegistry,
    normalize_identity,
)
from edgeprobe.config.settings import ProbeSettings, load_settings

__all__ = [
    "DEFAULT_IMPERSONATION",
    "DEFAULT_PROFILE",
    "IdentityProfile",
    "IdentityRegistry",
    "ProbeSettings",
    "load_settings",
    "normalize_identity",
]

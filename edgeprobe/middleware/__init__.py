"""Middleware package: error hierarchy and API exception handlers."""

from edgeprobe.middleware.error_handler import (
    BrowserLaunchError,
    ChallengeError,
    ChallengeNavigationError,
    ChallengeTimeout,
    ClientBuildError,
    ConfigError,
    LoggingError,
    NetworkError,
    ProbeError,
    UnknownProfileError,
    register_error_handlers,
)

__all__ = [
    "BrowserLaunchError",
    "ChallengeError",
    "ChallengeNavigationError",
    "ChallengeTimeout",
    "ClientBuildError",
    "ConfigError",
    "LoggingError",
    "NetworkError",
    "ProbeError",
    "UnknownProfileError",
    "register_error_handlers",
]

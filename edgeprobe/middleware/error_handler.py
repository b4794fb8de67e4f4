"""Global error hierarchy and FastAPI exception handlers.

All probe-specific errors extend ProbeError. Every condition that can occur
inside a worker loop is recoverable and is resolved there; only startup
failures (configuration, event-log sink) abort the process. The FastAPI
exception handlers render these errors as the JSON envelope
{ success, data, error, meta } used by the telemetry API.
"""

from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Error hierarchy
# ---------------------------------------------------------------------------


class ProbeError(Exception):
    """Base error for all probe-specific errors."""

    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: str | None = None, **kwargs: object) -> None:
        self.message = message or self.__class__.message
        self.details = kwargs
        super().__init__(self.message)


class ConfigError(ProbeError):
    """Startup configuration is missing or invalid (fatal)."""

    message = "Invalid configuration"


class ClientBuildError(ProbeError):
    """The impersonating HTTP client could not be constructed.

    Local to the attempt: counted as failed, node health untouched.
    """

    message = "Failed to build HTTP client"


class UnknownProfileError(ClientBuildError):
    """Profile name is not present in a strict identity registry."""

    message = "Unknown identity profile"


class NetworkError(ProbeError):
    """Transport failure while talking to the target through a node."""

    status_code = 502
    message = "Network error during request"


class ChallengeError(ProbeError):
    """Base for failures of a browser escalation."""

    status_code = 502
    message = "Challenge escalation failed"


class BrowserLaunchError(ChallengeError):
    """No usable browser executable, or the browser session failed to start."""

    message = "Failed to launch browser"


class ChallengeNavigationError(ChallengeError):
    """The browser could not load the target page."""

    message = "Browser navigation failed"


class ChallengeTimeout(ChallengeError):
    """No success indicator appeared before the polling deadline."""

    status_code = 504
    message = "Browser timed out waiting for challenge"


class LoggingError(ProbeError):
    """Event-log sink failure. Fatal only when opening the sink at startup."""

    message = "Event log failure"


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------


def _envelope(
    status_code: int,
    error: str,
    meta: dict | None = None,
) -> JSONResponse:
    """Build a JSON envelope error response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "data": None,
            "error": error,
            "meta": meta,
        },
    )


async def _probe_error_handler(_request: Request, exc: ProbeError) -> JSONResponse:
    """Handle ProbeError subclasses."""
    meta = exc.details if exc.details else None
    return _envelope(exc.status_code, exc.message, meta=meta)


async def _unhandled_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions. Logs the traceback and returns a generic 500."""
    logger.error(
        "Unhandled exception: %s\n%s",
        exc,
        traceback.format_exc(),
    )
    return _envelope(status_code=500, error="Internal server error")


# ---------------------------------------------------------------------------
# Registration helper
# ---------------------------------------------------------------------------


def register_error_handlers(app: FastAPI) -> None:
    """Wire up all exception handlers on the FastAPI application."""
    app.add_exception_handler(ProbeError, _probe_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_error_handler)  # type: ignore[arg-type]

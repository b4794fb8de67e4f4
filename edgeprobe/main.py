"""FastAPI application entry point with lifespan management.

Startup: configure logging, open the event log, build the egress pool,
identity builder, challenge solver and orchestrator, then start the probe
workers. Shutdown: cancel the workers without draining and close the
event log.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from edgeprobe.analysis.skeleton import StructuralBaseline
from edgeprobe.browser.solver import ChallengeSolver
from edgeprobe.config.profiles import IdentityRegistry
from edgeprobe.config.settings import ProbeSettings, load_settings
from edgeprobe.identity.builder import IdentityBuilder
from edgeprobe.integration.credential_sink import CredentialSink
from edgeprobe.logging_config import configure_logging
from edgeprobe.middleware.error_handler import register_error_handlers
from edgeprobe.proxy.manager import EgressPool
from edgeprobe.routers.health import create_health_router
from edgeprobe.services.orchestrator import Orchestrator
from edgeprobe.telemetry.counters import Telemetry
from edgeprobe.telemetry.event_log import EventLog

logger = logging.getLogger(__name__)


def build_orchestrator(
    settings: ProbeSettings,
    *,
    event_log: EventLog,
    telemetry: Telemetry,
    pool: EgressPool,
) -> Orchestrator:
    """Wire the engine components from *settings*."""
    builder = IdentityBuilder(
        IdentityRegistry(settings.profiles),
        timeout_seconds=settings.request_timeout_seconds,
    )
    solver = ChallengeSolver(
        event_log=event_log,
        success_cookie=settings.success_cookie,
        timeout_seconds=settings.challenge_timeout_seconds,
        poll_interval_ms=settings.challenge_poll_interval_ms,
        headless=settings.browser_headless,
        executable=settings.browser_executable,
    )
    return Orchestrator(
        target_url=settings.target_url,
        concurrency=settings.concurrency,
        profile_name=settings.default_profile,
        pool=pool,
        builder=builder,
        solver=solver,
        telemetry=telemetry,
        event_log=event_log,
        credential_sink=CredentialSink(settings.credential_path),
        baseline=StructuralBaseline(),
        solver_max_workers=settings.solver_max_workers,
        idle_interval_ms=settings.idle_interval_ms,
        cycle_interval_ms=settings.cycle_interval_ms,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown logic."""
    settings: ProbeSettings = app.state.settings

    configure_logging(settings.log_level)
    logger.info("Starting probe engine against %s", settings.target_url)

    # A sink that cannot be opened aborts startup
    event_log = EventLog.open(settings.log_dir, queue_size=settings.event_queue_size)

    telemetry = Telemetry()
    pool = EgressPool(
        settings.proxies,
        failure_threshold=settings.node_failure_threshold,
        cooldown_seconds=settings.node_cooldown_seconds,
    )
    orchestrator = build_orchestrator(
        settings, event_log=event_log, telemetry=telemetry, pool=pool
    )

    app.include_router(
        create_health_router(
            target_url=settings.target_url,
            telemetry=telemetry,
            pool=pool,
            event_log=event_log,
        )
    )
    app.state.telemetry = telemetry
    app.state.orchestrator = orchestrator

    await orchestrator.start()
    logger.info("Probe engine started")

    yield

    # --- Shutdown ---
    logger.info("Stopping probe engine…")
    await orchestrator.stop()
    event_log.close()
    logger.info("Probe engine stopped")


def create_app(settings: ProbeSettings | None = None, *, config_path: str | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Loads settings eagerly so invalid configuration fails before any worker
    starts.
    """
    if settings is None:
        settings = load_settings(config_path)

    app = FastAPI(
        title="Edgeprobe",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    register_error_handlers(app)

    return app

"""Health and telemetry endpoints.

Read-only views over the running engine, polled by external dashboards:
- GET /health: liveness plus egress pool summary
- GET /readiness: 200 only when at least one egress node is eligible
- GET /stats: attempt counters and per-node health
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Response

from edgeprobe.logging_config import sanitize
from edgeprobe.models.responses import (
    ApiResponse,
    CountersPayload,
    PoolPayload,
    StatsPayload,
)

if TYPE_CHECKING:
    from edgeprobe.proxy.manager import EgressPool
    from edgeprobe.telemetry.counters import Telemetry


def _pool_payload(pool: "EgressPool | None") -> PoolPayload:
    stats = pool.get_stats() if pool else {"total": 0, "eligible": 0, "cooling": 0, "nodes": []}
    for row in stats["nodes"]:
        row["address"] = sanitize(row["address"])
    return PoolPayload.model_validate(stats)


def create_health_router(
    *,
    target_url: str,
    telemetry: "Telemetry",
    pool: "EgressPool | None" = None,
    event_log: Any = None,
) -> APIRouter:
    """Factory that creates the health router with injected dependencies."""

    health_router = APIRouter(tags=["health"])

    @health_router.get("/health")
    async def health() -> dict:
        """Service health check with egress pool summary."""
        pool_stats = _pool_payload(pool)
        return ApiResponse(
            success=True,
            data={
                "status": "healthy",
                "nodes_total": pool_stats.total,
                "nodes_eligible": pool_stats.eligible,
            },
        ).model_dump()

    @health_router.get("/readiness")
    async def readiness(response: Response) -> dict:
        """Readiness probe. 200 iff at least one egress node is eligible."""
        pool_stats = _pool_payload(pool)
        is_ready = pool_stats.eligible > 0

        if not is_ready:
            response.status_code = 503

        return ApiResponse(
            success=is_ready,
            data={"ready": is_ready, "nodes_eligible": pool_stats.eligible},
            error=None if is_ready else "No eligible egress nodes",
        ).model_dump()

    @health_router.get("/stats")
    async def stats() -> dict:
        """Attempt counters and egress pool detail."""
        snapshot = telemetry.snapshot()
        payload = StatsPayload(
            target_url=target_url,
            counters=CountersPayload(**snapshot.as_dict()),
            pool=_pool_payload(pool),
            events_dropped=getattr(event_log, "dropped", 0) if event_log else 0,
        )
        return ApiResponse(success=True, data=payload.model_dump()).model_dump()

    return health_router

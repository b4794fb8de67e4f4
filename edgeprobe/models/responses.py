"""API response envelope and telemetry payload models.

All API responses are wrapped in this envelope for consistency:
{ success: bool, data: T | None, error: str | None, meta: dict | None }
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """JSON envelope for all API responses."""

    success: bool
    data: T | None = None
    error: str | None = None
    meta: dict | None = None


class CountersPayload(BaseModel):
    """Telemetry counters as exposed to dashboards."""

    total: int
    success: int
    blocked: int
    failed: int
    success_rate: float


class NodePayload(BaseModel):
    """One egress node row."""

    address: str
    protocol: str
    eligible: bool
    failure_count: int
    success_count: int
    total_failures: int
    cooldown_remaining_s: float | None = None


class PoolPayload(BaseModel):
    """Egress pool summary."""

    total: int
    eligible: int
    cooling: int
    nodes: list[NodePayload] = []


class StatsPayload(BaseModel):
    """Body of ``GET /stats``."""

    target_url: str
    counters: CountersPayload
    pool: PoolPayload
    events_dropped: int = 0

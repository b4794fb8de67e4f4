"""Public API models for the probe service."""

from edgeprobe.models.responses import (
    ApiResponse,
    CountersPayload,
    NodePayload,
    PoolPayload,
    StatsPayload,
)

__all__ = [
    "ApiResponse",
    "CountersPayload",
    "NodePayload",
    "PoolPayload",
    "StatsPayload",
]

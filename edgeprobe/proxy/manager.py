"""Egress node pool with round-robin selection and failure-triggered cooldown.

Nodes are loaded once from a list of URL strings (e.g. ["http://proxy1:8080",
"socks5://proxy2:1080"]) and never added or removed afterwards. Selection
walks the pool in a fixed cyclic order, skipping nodes in cooldown. A node
whose failure count exceeds the threshold is cooled down for a fixed period;
when the deadline has passed the next encounter in rotation clears it and
zeroes the failure count.

Every public operation runs inside one critical section guarded by a
``threading.Lock``, so the pool can be shared by asyncio workers and by
threads of the browser escalation executor alike.
"""

from __future__ import annotations

import logging
import threading
import time
from urllib.parse import urlparse

from edgeprobe.proxy.types import EgressNode

logger = logging.getLogger(__name__)

FAILURE_THRESHOLD = 3
COOLDOWN_SECONDS = 60.0


class EgressPool:
    """Manages a fixed pool of egress nodes with rotation and cooldown."""

    def __init__(
        self,
        endpoints: list[str],
        *,
        failure_threshold: int = FAILURE_THRESHOLD,
        cooldown_seconds: float = COOLDOWN_SECONDS,
    ) -> None:
        self._failure_threshold = failure_threshold
        self._cooldown_seconds = cooldown_seconds
        self._lock = threading.Lock()
        self._index: int = 0
        self._nodes: list[EgressNode] = []

        for raw_url in endpoints:
            parsed = urlparse(raw_url)
            protocol = parsed.scheme.lower() if parsed.scheme else "http"
            self._nodes.append(EgressNode(address=raw_url, protocol=protocol))

        if self._nodes:
            logger.info("Egress pool initialized with %d nodes", len(self._nodes))
        else:
            logger.warning("Egress pool is empty, no requests will be issued")

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def nodes(self) -> tuple[EgressNode, ...]:
        return tuple(self._nodes)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def next(self) -> EgressNode | None:
        """Return the next eligible node in rotation, or ``None``.

        Scans at most one full cycle. A node whose cooldown has expired is
        reset (deadline cleared, failure count zeroed) before being returned.
        """
        with self._lock:
            pool_size = len(self._nodes)
            if pool_size == 0:
                return None

            now = time.monotonic()
            for _ in range(pool_size):
                node = self._nodes[self._index]
                self._index = (self._index + 1) % pool_size

                if node.cooldown_until is not None:
                    if now < node.cooldown_until:
                        continue
                    node.cooldown_until = None
                    node.failure_count = 0
                    logger.info("Egress node left cooldown: %s", node.address)

                return node

            return None

    # ------------------------------------------------------------------
    # Health tracking
    # ------------------------------------------------------------------

    def report_failure(self, node: EgressNode) -> None:
        """Increment the node's failure count; cool it down past the threshold."""
        with self._lock:
            node.failure_count += 1
            node.total_failures += 1
            if node.failure_count > self._failure_threshold:
                node.cooldown_until = time.monotonic() + self._cooldown_seconds
                logger.warning(
                    "Egress node cooling down for %.0fs: %s (failures: %d)",
                    self._cooldown_seconds,
                    node.address,
                    node.failure_count,
                )

    def report_success(self, node: EgressNode) -> None:
        """Reset the node's failure count. An existing cooldown is left in place."""
        with self._lock:
            node.failure_count = 0
            node.success_count += 1

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def get_stats(self) -> dict:
        """Return pool statistics for the telemetry API."""
        with self._lock:
            now = time.monotonic()
            per_node = [
                {
                    "address": n.address,
                    "protocol": n.protocol,
                    "eligible": n.is_eligible(now),
                    "failure_count": n.failure_count,
                    "success_count": n.success_count,
                    "total_failures": n.total_failures,
                    "cooldown_remaining_s": (
                        round(max(n.cooldown_until - now, 0.0), 1)
                        if n.cooldown_until is not None
                        else None
                    ),
                }
                for n in self._nodes
            ]

        eligible = sum(1 for row in per_node if row["eligible"])
        return {
            "total": len(per_node),
            "eligible": eligible,
            "cooling": len(per_node) - eligible,
            "nodes": per_node,
        }

"""Egress node data model for the egress pool."""

from __future__ import annotations

import time
from dataclasses import dataclass


@dataclass
class EgressNode:
    """A single proxy endpoint with failure and cooldown tracking."""

    address: str
    protocol: str  # http, https, socks5
    failure_count: int = 0
    cooldown_until: float | None = None  # time.monotonic() deadline
    success_count: int = 0
    total_failures: int = 0

    def is_eligible(self, now: float | None = None) -> bool:
        """Return ``True`` if no cooldown is set or the deadline has passed."""
        if self.cooldown_until is None:
            return True
        if now is None:
            now = time.monotonic()
        return now >= self.cooldown_until

"""Shared attempt counters with a read-only snapshot view."""

from __future__ import annotations

import threading
from dataclasses import dataclass


class _Counter:
    """A monotonically increasing counter with its own lock."""

    __slots__ = ("_lock", "_value")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    def increment(self) -> None:
        with self._lock:
            self._value += 1

    @property
    def value(self) -> int:
        return self._value


@dataclass(frozen=True)
class TelemetrySnapshot:
    """Point-in-time copy of the counters."""

    total: int
    success: int
    blocked: int
    failed: int

    @property
    def success_rate(self) -> float:
        """Percentage of counted attempts that succeeded (100.0 when idle)."""
        if self.total == 0:
            return 100.0
        return round(self.success / self.total * 100.0, 2)

    def as_dict(self) -> dict:
        return {
            "total": self.total,
            "success": self.success,
            "blocked": self.blocked,
            "failed": self.failed,
            "success_rate": self.success_rate,
        }


class Telemetry:
    """Four independent counters: total attempts, successes, blocked, failed.

    ``total`` counts attempts whose client was built; a client-build failure
    only increments ``failed``. Counters never decrease or reset.
    """

    def __init__(self) -> None:
        self._total = _Counter()
        self._success = _Counter()
        self._blocked = _Counter()
        self._failed = _Counter()

    def record_attempt(self) -> None:
        self._total.increment()

    def record_success(self) -> None:
        self._success.increment()

    def record_blocked(self) -> None:
        self._blocked.increment()

    def record_failed(self) -> None:
        self._failed.increment()

    def snapshot(self) -> TelemetrySnapshot:
        return TelemetrySnapshot(
            total=self._total.value,
            success=self._success.value,
            blocked=self._blocked.value,
            failed=self._failed.value,
        )

"""Probe orchestrator: a fixed pool of asyncio workers probing one target.

Each worker loops forever:

acquire node → build identity client → request → classify → (escalate to
the browser solver on a challenge) → report the outcome to the egress pool
and to the shared counters → short sleep.

Workers share only the egress pool and the telemetry counters. Browser
escalations run on a bounded thread pool; the invoking worker awaits its
future while every other worker keeps running on the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from edgeprobe.analysis.classifier import Outcome, Verdict, classify
from edgeprobe.analysis.skeleton import StructuralBaseline
from edgeprobe.browser.solver import ChallengeSolver
from edgeprobe.identity.builder import IdentityBuilder
from edgeprobe.integration.credential_sink import CredentialSink
from edgeprobe.logging_config import sanitize
from edgeprobe.middleware.error_handler import (
    ChallengeError,
    ClientBuildError,
    NetworkError,
)
from edgeprobe.proxy.manager import EgressPool
from edgeprobe.proxy.types import EgressNode
from edgeprobe.telemetry.counters import Telemetry

logger = logging.getLogger(__name__)


def worker_name(index: int) -> str:
    return f"Worker-{index:02d}"


class Orchestrator:
    """Runs ``concurrency`` independent probe workers.

    Dependencies are injected via the constructor so the orchestrator is
    testable without real browsers or network calls.
    """

    def __init__(
        self,
        *,
        target_url: str,
        concurrency: int,
        profile_name: str,
        pool: EgressPool,
        builder: IdentityBuilder,
        solver: ChallengeSolver,
        telemetry: Telemetry,
        event_log: Any,
        credential_sink: CredentialSink,
        baseline: StructuralBaseline | None = None,
        solver_max_workers: int = 4,
        idle_interval_ms: int = 100,
        cycle_interval_ms: int = 50,
    ) -> None:
        self._target_url = target_url
        self._concurrency = concurrency
        self._profile_name = profile_name
        self._pool = pool
        self._builder = builder
        self._solver = solver
        self._telemetry = telemetry
        self._events = event_log
        self._credential_sink = credential_sink
        self._baseline = baseline or StructuralBaseline()
        self._idle_interval = idle_interval_ms / 1000.0
        self._cycle_interval = cycle_interval_ms / 1000.0

        self._solver_executor = ThreadPoolExecutor(
            max_workers=solver_max_workers,
            thread_name_prefix="challenge-solver",
        )
        self._workers: list[asyncio.Task[None]] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return any(not w.done() for w in self._workers)

    async def start(self) -> None:
        """Spawn the worker tasks."""
        if self._workers:
            logger.warning("Workers already started, ignoring start()")
            return

        for i in range(self._concurrency):
            worker = asyncio.create_task(
                self._worker_loop(worker_name(i)), name=f"probe-worker-{i:02d}"
            )
            self._workers.append(worker)

        logger.info(
            "Started %d probe workers against %s (%d egress nodes)",
            self._concurrency,
            self._target_url,
            len(self._pool),
        )

    async def run(self) -> None:
        """Start the workers and wait until they are cancelled."""
        await self.start()
        await asyncio.gather(*self._workers, return_exceptions=True)

    async def stop(self) -> None:
        """Cancel every worker immediately. In-flight work is not drained.

        Queued escalations are cancelled and the call returns without
        waiting for running ones. Those threads cannot be interrupted: each
        ends on its own navigation and polling deadlines, and the
        interpreter joins them at exit, so process exit can lag by up to
        about twice ``challenge_timeout_seconds``.
        """
        for worker in self._workers:
            worker.cancel()
        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers.clear()
        self._solver_executor.shutdown(wait=False, cancel_futures=True)
        logger.info("Probe workers stopped")

    # ------------------------------------------------------------------
    # Worker loop
    # ------------------------------------------------------------------

    async def _worker_loop(self, worker_id: str) -> None:
        logger.debug("%s started", worker_id)
        while True:
            try:
                await self.run_cycle(worker_id)
            except Exception as exc:
                self._telemetry.record_failed()
                logger.exception("%s: unexpected error in cycle", worker_id)
                self._events.log(worker_id, "WORKER_ERROR", "Unexpected error in cycle", repr(exc))
            await asyncio.sleep(self._cycle_interval)

    async def run_cycle(self, worker_id: str) -> Verdict | None:
        """Run one acquire → request → classify → report iteration.

        Returns the verdict, or ``None`` when no request was classified
        (no node available, client build failure, transport failure).
        """
        node = self._pool.next()
        if node is None:
            await asyncio.sleep(self._idle_interval)
            return None

        node_label = sanitize(node.address)
        self._events.log(worker_id, "REQ_START", "Starting request cycle", node_label)

        try:
            client = self._builder.build(self._profile_name, node)
        except ClientBuildError as exc:
            # Local to this attempt; node health untouched
            self._events.log(worker_id, "CLIENT_ERR", "Failed to build TLS client", exc.message)
            self._telemetry.record_failed()
            return None

        self._telemetry.record_attempt()

        try:
            result = await client.fetch(self._target_url)
        except NetworkError as exc:
            logger.warning(
                "Request failed: %s",
                exc.message,
                extra={"worker_id": worker_id, "node": node_label},
            )
            self._events.log(worker_id, "REQ_FAILED", "Network error during request", exc.message)
            self._telemetry.record_failed()
            self._pool.report_failure(node)
            return None

        self._events.log(worker_id, "CONN_ESTABLISHED", "Response received", {"status": result.status})
        verdict = classify(result.status, result.body)

        if verdict.outcome is Outcome.SUCCESS:
            self._events.log(worker_id, "VERDICT_SUCCESS", "Request passed WAF")
            self._observe_structure(worker_id, result.body)
            self._telemetry.record_success()
            self._pool.report_success(node)

        elif verdict.outcome is Outcome.BLOCKED:
            self._events.log(worker_id, "VERDICT_BLOCKED", "Request blocked by WAF/filter", {"reason": verdict.reason})
            self._telemetry.record_blocked()
            self._pool.report_failure(node)

        elif verdict.outcome is Outcome.CHALLENGE:
            self._events.log(
                worker_id,
                "VERDICT_CHALLENGE",
                "Challenge detected, escalating to browser",
                {"kind": verdict.challenge.value},  # type: ignore[union-attr]
            )
            logger.info(
                "Challenge detected, launching browser",
                extra={"worker_id": worker_id, "node": node_label},
            )
            await self._escalate(worker_id, node)

        return verdict

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _escalate(self, worker_id: str, node: EgressNode) -> bool:
        """Solve a challenge on the solver pool and record the outcome."""
        loop = asyncio.get_running_loop()
        try:
            credential = await loop.run_in_executor(
                self._solver_executor,
                self._solver.solve,
                self._target_url,
                node,
                worker_id,
            )
        except ChallengeError as exc:
            logger.warning(
                "Browser failed to solve challenge: %s",
                exc.message,
                extra={"worker_id": worker_id, "reason": type(exc).__name__},
            )
            self._telemetry.record_blocked()
            self._pool.report_failure(node)
            return False
        except Exception as exc:
            logger.error(
                "Browser escalation crashed: %r",
                exc,
                extra={"worker_id": worker_id, "reason": type(exc).__name__},
            )
            self._telemetry.record_blocked()
            self._pool.report_failure(node)
            return False

        try:
            await asyncio.to_thread(self._credential_sink.write, credential)
            self._events.log(worker_id, "CREDENTIAL_WRITTEN", "Clearance credential stored", str(self._credential_sink.path))
        except OSError as exc:
            logger.error("Failed to write clearance credential: %s", exc, extra={"worker_id": worker_id})

        logger.info("Challenge solved", extra={"worker_id": worker_id})
        self._telemetry.record_success()
        self._pool.report_success(node)
        return True

    def _observe_structure(self, worker_id: str, body: str) -> None:
        captured, drifted = self._baseline.observe(body)
        if captured:
            self._events.log(worker_id, "BASELINE_CAPTURED", "Structural baseline captured", f"{self._baseline.value:016x}")
        elif drifted:
            self._events.log(worker_id, "STRUCTURE_DRIFT", "Page structure differs from baseline")

"""Structural fingerprint of response bodies.

The skeleton hash is computed from markup tag contents only: every
character between ``<`` and ``>`` (brackets included) is fed, in order, into
a BLAKE2b accumulator. Visible text never contributes, so two pages that
differ only in copy hash identically, while adding, removing or reordering
tags changes the hash.
"""

from __future__ import annotations

import hashlib
import logging
import threading

logger = logging.getLogger(__name__)


def skeleton_hash(body: str) -> int:
    """Return the 64-bit tag-skeleton hash of *body*."""
    accumulator = hashlib.blake2b(digest_size=8)
    in_tag = False
    segment: list[str] = []

    for char in body:
        if char == "<":
            in_tag = True
        if in_tag:
            segment.append(char)
            if char == ">":
                in_tag = False
                accumulator.update("".join(segment).encode("utf-8"))
                segment.clear()

    # Unterminated trailing tag
    if segment:
        accumulator.update("".join(segment).encode("utf-8"))

    return int.from_bytes(accumulator.digest(), "big")


class StructuralBaseline:
    """At-most-once baseline of the first successful page's skeleton.

    The first call to :meth:`observe` stores the hash; later calls compare
    against it and never overwrite it. Drift is observational only.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._baseline: int | None = None

    @property
    def value(self) -> int | None:
        return self._baseline

    def observe(self, body: str) -> tuple[bool, bool]:
        """Record a successful body.

        Returns ``(captured, drifted)``: ``captured`` is ``True`` when this
        body became the baseline, ``drifted`` is ``True`` when its skeleton
        differs from the stored baseline.
        """
        digest = skeleton_hash(body)
        with self._lock:
            if self._baseline is None:
                self._baseline = digest
                logger.info("Structural baseline captured: %016x", digest)
                return True, False
            baseline = self._baseline

        drifted = digest != baseline
        if drifted:
            logger.warning(
                "Structural drift detected: baseline=%016x current=%016x",
                baseline,
                digest,
            )
        return False, drifted

"""Response classification for single probe attempts.

``classify(status, body)`` maps one response to a :class:`Verdict` by
evaluating an ordered list of rules; the first match wins:

1. success marker in the body → Success
2. challenge marker (case-insensitive) → Challenge(kind)
3. status 403 / 429 → Blocked("HTTP <status>")
4. block keyword (case-insensitive) → Blocked("keyword: <word>")
5. 2xx → Success, anything else → Blocked("status <status>")

The function has no side effects apart from a debug diagnostic on rule 4.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------

# Case-sensitive; shared with the challenge solver's page-content check
SUCCESS_MARKERS: tuple[str, ...] = ("Access Granted", "Welcome")

JAVASCRIPT_CHALLENGE_MARKERS: tuple[str, ...] = (
    "checking your browser",
    "enable javascript",
)

# Both markers of a pair must be present. Only interstitial tokens count:
# regular pages behind the provider also load /cdn-cgi/challenge-platform/
CLOUDFLARE_MARKER_PAIRS: tuple[tuple[str, str], ...] = (
    ("cloudflare", "_cf_chl_opt"),
    ("cloudflare", "cf-chl"),
)

BLOCKED_STATUSES: frozenset[int] = frozenset({403, 429})

BLOCK_KEYWORDS: tuple[str, ...] = ("captcha", "cloudflare", "access denied")


# ---------------------------------------------------------------------------
# Verdict model
# ---------------------------------------------------------------------------


class Outcome(str, Enum):
    """Verdict tags."""

    SUCCESS = "success"
    BLOCKED = "blocked"
    CHALLENGE = "challenge"


class ChallengeKind(str, Enum):
    """Kinds of anti-automation interstitial."""

    JAVASCRIPT = "javascript"
    CLOUDFLARE = "cloudflare"


@dataclass(frozen=True)
class Verdict:
    """Classification outcome of one attempt. Produced fresh, never stored."""

    outcome: Outcome
    reason: str | None = None
    challenge: ChallengeKind | None = None

    @classmethod
    def success(cls) -> "Verdict":
        return cls(Outcome.SUCCESS)

    @classmethod
    def blocked(cls, reason: str) -> "Verdict":
        return cls(Outcome.BLOCKED, reason=reason)

    @classmethod
    def challenged(cls, kind: ChallengeKind) -> "Verdict":
        return cls(Outcome.CHALLENGE, challenge=kind)

    def __str__(self) -> str:
        if self.outcome is Outcome.BLOCKED:
            return f"Blocked({self.reason})"
        if self.outcome is Outcome.CHALLENGE:
            return f"Challenge({self.challenge.value})"  # type: ignore[union-attr]
        return "Success"


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def has_success_marker(body: str) -> bool:
    """Return ``True`` if *body* contains any success marker."""
    return any(marker in body for marker in SUCCESS_MARKERS)


def detect_challenge(body: str) -> ChallengeKind | None:
    """Return the challenge kind signalled by *body*, if any.

    A provider marker pair is more specific than the generic JavaScript
    markers and is checked first.
    """
    lowered = body.lower()
    for first, second in CLOUDFLARE_MARKER_PAIRS:
        if first in lowered and second in lowered:
            return ChallengeKind.CLOUDFLARE
    if any(marker in lowered for marker in JAVASCRIPT_CHALLENGE_MARKERS):
        return ChallengeKind.JAVASCRIPT
    return None


def classify(status: int, body: str) -> Verdict:
    """Classify one response. Pure and deterministic."""
    if has_success_marker(body):
        return Verdict.success()

    kind = detect_challenge(body)
    if kind is not None:
        return Verdict.challenged(kind)

    if status in BLOCKED_STATUSES:
        return Verdict.blocked(f"HTTP {status}")

    lowered = body.lower()
    for word in BLOCK_KEYWORDS:
        if word in lowered:
            logger.debug("Block keyword matched: %s (status=%d)", word, status)
            return Verdict.blocked(f"keyword: {word}")

    if 200 <= status < 300:
        return Verdict.success()
    return Verdict.blocked(f"status {status}")

"""Browser escalation: challenge solver and desktop fingerprint."""

from edgeprobe.browser.fingerprint import (
    ACCEPT_LANGUAGE,
    DESKTOP_PLATFORM,
    DESKTOP_USER_AGENT,
    HumanInteraction,
    InteractionPlan,
)
from edgeprobe.browser.solver import (
    CHROMIUM_ARGS,
    ChallengeAttempt,
    ChallengeSolver,
    SolverState,
    candidate_paths,
    find_browser_executable,
    join_cookies,
)

__all__ = [
    "ACCEPT_LANGUAGE",
    "CHROMIUM_ARGS",
    "DESKTOP_PLATFORM",
    "DESKTOP_USER_AGENT",
    "ChallengeAttempt",
    "ChallengeSolver",
    "HumanInteraction",
    "InteractionPlan",
    "SolverState",
    "candidate_paths",
    "find_browser_executable",
    "join_cookies",
]

"""Desktop browser signature and human-interaction simulation.

The fixed desktop signature (user agent, platform, language) is shared by
the impersonating HTTP client and the escalation browser so both tiers
present the same identity. The helpers below generate randomized pointer
paths and inter-step delays that the challenge solver replays on a page.
"""

from __future__ import annotations

import random
from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Desktop signature (matches the chrome131 impersonation target)
# ---------------------------------------------------------------------------

DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)
DESKTOP_PLATFORM = "Windows"
ACCEPT_LANGUAGE = "en-US,en;q=0.9"
DESKTOP_LOCALE = "en-US"
VIEWPORT_WIDTH = 1920
VIEWPORT_HEIGHT = 1080


# ---------------------------------------------------------------------------
# JavaScript overrides to mask automation detection
# ---------------------------------------------------------------------------

WEBDRIVER_OVERRIDE_JS = """
(() => {
    // Mask navigator.webdriver
    Object.defineProperty(navigator, 'webdriver', {
        get: () => undefined,
        configurable: true,
    });

    // Mask chrome.runtime to appear as a normal Chrome browser
    if (!window.chrome) {
        window.chrome = {};
    }
    if (!window.chrome.runtime) {
        window.chrome.runtime = {
            connect: function() {},
            sendMessage: function() {},
        };
    }
})();
"""


# ---------------------------------------------------------------------------
# Interaction plan
# ---------------------------------------------------------------------------

@dataclass
class InteractionPlan:
    """A pointer path with per-step delays, followed by one scroll."""

    points: list[tuple[float, float]]
    delays_ms: list[float]
    scroll_delta: int


class HumanInteraction:
    """Generates randomized pointer paths that approach a random destination.

    Each path starts at a random point, bends through a random control point
    (quadratic Bézier) and adds small jitter to every intermediate step.
    """

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        width: int = VIEWPORT_WIDTH,
        height: int = VIEWPORT_HEIGHT,
    ) -> None:
        self._rng = rng or random.Random()
        self._width = width
        self._height = height

    def _random_point(self) -> tuple[float, float]:
        return (
            self._rng.uniform(0, self._width - 1),
            self._rng.uniform(0, self._height - 1),
        )

    def path(
        self,
        start: tuple[float, float],
        end: tuple[float, float],
        steps: int,
    ) -> list[tuple[float, float]]:
        """Return *steps* points from *start* to *end*, ending exactly at *end*."""
        control = self._random_point()
        points: list[tuple[float, float]] = []
        for i in range(1, steps + 1):
            t = i / steps
            x = (1 - t) ** 2 * start[0] + 2 * (1 - t) * t * control[0] + t ** 2 * end[0]
            y = (1 - t) ** 2 * start[1] + 2 * (1 - t) * t * control[1] + t ** 2 * end[1]
            if i < steps:
                x += self._rng.uniform(-3.0, 3.0)
                y += self._rng.uniform(-3.0, 3.0)
            points.append((
                min(max(x, 0.0), self._width - 1),
                min(max(y, 0.0), self._height - 1),
            ))
        return points

    def plan(self) -> InteractionPlan:
        """Build a fresh randomized interaction plan."""
        steps = self._rng.randint(8, 15)
        points = self.path(self._random_point(), self._random_point(), steps)
        delays = [self.get_action_delay(20, 80) for _ in points]
        return InteractionPlan(
            points=points,
            delays_ms=delays,
            scroll_delta=self._rng.randint(200, 600),
        )

    def get_action_delay(
        self,
        min_delay_ms: int = 500,
        max_delay_ms: int = 2000,
    ) -> float:
        """Return a random delay in milliseconds within the given range."""
        return self._rng.uniform(min_delay_ms, max_delay_ms)

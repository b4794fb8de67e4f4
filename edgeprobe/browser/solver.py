"""Browser escalation for anti-automation challenges.

``ChallengeSolver.solve()`` drives one escalation through a fixed state
machine::

    INIT → LAUNCH → CONFIGURE → NAVIGATE → INTERACT → POLL → SOLVED | TIMED_OUT

It uses Playwright's *sync* API and therefore blocks the calling thread for
up to the polling timeout. The orchestrator runs it on a dedicated thread
pool so asyncio workers keep making progress meanwhile. Every escalation
gets its own browser process, discarded afterwards.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import urlparse

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from edgeprobe.analysis.classifier import has_success_marker
from edgeprobe.browser.fingerprint import (
    ACCEPT_LANGUAGE,
    DESKTOP_LOCALE,
    DESKTOP_PLATFORM,
    DESKTOP_USER_AGENT,
    VIEWPORT_HEIGHT,
    VIEWPORT_WIDTH,
    WEBDRIVER_OVERRIDE_JS,
    HumanInteraction,
)
from edgeprobe.middleware.error_handler import (
    BrowserLaunchError,
    ChallengeError,
    ChallengeNavigationError,
    ChallengeTimeout,
)
from edgeprobe.proxy.types import EgressNode

logger = logging.getLogger(__name__)

# Chromium flags for headless operation and WAF evasion
CHROMIUM_ARGS: list[str] = [
    "--no-sandbox",
    "--disable-gpu",
    "--disable-dev-shm-usage",
    f"--window-size={VIEWPORT_WIDTH},{VIEWPORT_HEIGHT}",
    "--disable-blink-features=AutomationControlled",
    "--disable-software-rasterizer",
]

BROWSER_EXECUTABLE_CANDIDATES: dict[str, tuple[str, ...]] = {
    "linux": (
        "/usr/bin/chromium",
        "/usr/bin/chromium-browser",
        "/usr/bin/google-chrome",
        "/usr/bin/google-chrome-stable",
        "/snap/bin/chromium",
        "/bin/chromium",
    ),
    "darwin": (
        "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
        "/Applications/Chromium.app/Contents/MacOS/Chromium",
        "/Applications/Microsoft Edge.app/Contents/MacOS/Microsoft Edge",
    ),
    "win32": (
        "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe",
        "C:\\Program Files (x86)\\Google\\Chrome\\Application\\chrome.exe",
        "C:\\Program Files (x86)\\Microsoft\\Edge\\Application\\msedge.exe",
    ),
}


def _platform_family(platform: str) -> str:
    if platform.startswith("linux"):
        return "linux"
    if platform.startswith(("win", "cygwin")):
        return "win32"
    return platform


def candidate_paths(platform: str | None = None) -> list[str]:
    """Executable search list: the host platform's entries first, then the rest."""
    family = _platform_family(platform or sys.platform)
    ordered = list(BROWSER_EXECUTABLE_CANDIDATES.get(family, ()))
    for name, paths in BROWSER_EXECUTABLE_CANDIDATES.items():
        if name != family:
            ordered.extend(paths)
    return ordered


def find_browser_executable(
    candidates: list[str] | None = None,
    *,
    exists: Callable[[str], bool] = os.path.exists,
) -> str | None:
    """Return the first existing executable from *candidates*, or ``None``."""
    for path in candidates if candidates is not None else candidate_paths():
        if exists(path):
            return path
    return None


def playwright_proxy(node: EgressNode) -> dict[str, str]:
    """Translate a node URL into Playwright's proxy settings."""
    parsed = urlparse(node.address)
    server = f"{parsed.scheme}://{parsed.hostname}"
    if parsed.port:
        server = f"{server}:{parsed.port}"
    proxy = {"server": server}
    if parsed.username:
        proxy["username"] = parsed.username
        proxy["password"] = parsed.password or ""
    return proxy


def join_cookies(cookies: list[dict[str, Any]]) -> str:
    """Canonical credential form: ``name=value; name=value``."""
    return "; ".join(f"{c['name']}={c['value']}" for c in cookies)


class SolverState(str, Enum):
    """Escalation states."""

    INIT = "init"
    LAUNCH = "launch"
    CONFIGURE = "configure"
    NAVIGATE = "navigate"
    INTERACT = "interact"
    POLL = "poll"
    SOLVED = "solved"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


# Event emitted on entering each intermediate state; terminal states emit
# BROWSER_SUCCESS or BROWSER_FAIL from solve()
STAGE_EVENTS: dict[SolverState, tuple[str, str]] = {
    SolverState.LAUNCH: ("BROWSER_INIT", "Initializing headless browser"),
    SolverState.CONFIGURE: ("BROWSER_CONFIG", "Configuring network and user agent"),
    SolverState.NAVIGATE: ("BROWSER_NAV", "Navigating to target"),
    SolverState.INTERACT: ("BROWSER_INTERACT", "Simulating visitor interaction"),
    SolverState.POLL: ("BROWSER_POLL", "Waiting for clearance"),
}


@dataclass
class ChallengeAttempt:
    """Progress record for one escalation."""

    url: str
    worker_id: str
    node: str | None = None
    state: SolverState = SolverState.INIT
    history: list[SolverState] = field(default_factory=lambda: [SolverState.INIT])
    credential: str | None = None


class ChallengeSolver:
    """Launches an isolated browser, simulates a visitor and waits for clearance."""

    def __init__(
        self,
        *,
        event_log: Any,
        success_cookie: str = "waf_clearance",
        timeout_seconds: float = 25.0,
        poll_interval_ms: int = 500,
        headless: bool = True,
        executable: str | None = None,
        interaction: HumanInteraction | None = None,
        playwright_factory: Callable[[], Any] = sync_playwright,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._events = event_log
        self._success_cookie = success_cookie
        self._timeout = timeout_seconds
        self._poll_interval_ms = poll_interval_ms
        self._headless = headless
        self._executable = executable
        self._interaction = interaction or HumanInteraction()
        self._playwright_factory = playwright_factory
        self._clock = clock
        # One solver serves every executor thread
        self._local = threading.local()

    @property
    def last_attempt(self) -> ChallengeAttempt | None:
        """The most recent escalation started on the calling thread."""
        return getattr(self._local, "attempt", None)

    # ------------------------------------------------------------------
    # solve
    # ------------------------------------------------------------------

    def solve(self, url: str, node: EgressNode | None, worker_id: str) -> str:
        """Run one escalation and return the clearance credential.

        Raises:
            BrowserLaunchError: No executable, or the browser failed to start.
            ChallengeNavigationError: The target page could not be loaded.
            ChallengeTimeout: No success indicator before the deadline.
            ChallengeError: Any other failure of the browser session.
        """
        attempt = ChallengeAttempt(
            url=url,
            worker_id=worker_id,
            node=node.address if node else None,
        )
        self._local.attempt = attempt

        try:
            credential = self._solve(attempt, node)
        except ChallengeTimeout:
            self._transition(attempt, SolverState.TIMED_OUT)
            self._events.log(worker_id, "BROWSER_FAIL", "Browser timed out waiting for challenge")
            raise
        except ChallengeError as exc:
            self._fail(attempt, exc.message)
            raise
        except Exception as exc:
            logger.exception("Unexpected error during escalation for %s", worker_id)
            self._fail(attempt, f"Unexpected browser error: {exc}")
            raise ChallengeError(f"Unexpected browser error: {exc}") from exc

        attempt.credential = credential
        self._transition(attempt, SolverState.SOLVED)
        self._events.log(
            worker_id,
            "BROWSER_SUCCESS",
            "Challenge Solved",
            {"cookies": [part.split("=", 1)[0] for part in credential.split("; ") if part]},
        )
        return credential

    def _solve(self, attempt: ChallengeAttempt, node: EgressNode | None) -> str:
        self._transition(attempt, SolverState.LAUNCH)
        executable = self._executable or find_browser_executable()
        if executable is None:
            raise BrowserLaunchError("No usable browser executable found")
        logger.debug("Launching %s for %s", executable, attempt.worker_id)

        try:
            playwright = self._playwright_factory().start()
        except PlaywrightError as exc:
            raise BrowserLaunchError(f"Failed to start Playwright: {exc}") from exc

        try:
            launch_kwargs: dict[str, Any] = {
                "executable_path": executable,
                "headless": self._headless,
                "args": CHROMIUM_ARGS,
            }
            if node is not None:
                launch_kwargs["proxy"] = playwright_proxy(node)
            try:
                browser = playwright.chromium.launch(**launch_kwargs)
            except PlaywrightError as exc:
                raise BrowserLaunchError(f"Failed to launch browser: {exc}") from exc

            try:
                return self._drive(attempt, browser)
            finally:
                try:
                    browser.close()
                except PlaywrightError:
                    logger.debug("Error closing browser (may already be closed)", exc_info=True)
        finally:
            playwright.stop()

    def _drive(self, attempt: ChallengeAttempt, browser: Any) -> str:
        self._transition(attempt, SolverState.CONFIGURE)
        try:
            context, page = self._configure(browser)
        except PlaywrightError as exc:
            raise BrowserLaunchError(f"Failed to configure browser session: {exc}") from exc

        self._transition(attempt, SolverState.NAVIGATE, attempt.url)
        try:
            page.goto(attempt.url, wait_until="domcontentloaded")
        except PlaywrightError as exc:
            raise ChallengeNavigationError(f"Navigation failed: {exc}") from exc

        self._transition(attempt, SolverState.INTERACT)
        self.interact(page, attempt.worker_id)

        self._transition(attempt, SolverState.POLL)
        return self.poll(context, page)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _configure(self, browser: Any) -> tuple[Any, Any]:
        """Open a fresh context and page that present the desktop signature."""
        context = browser.new_context(
            user_agent=DESKTOP_USER_AGENT,
            locale=DESKTOP_LOCALE,
            viewport={"width": VIEWPORT_WIDTH, "height": VIEWPORT_HEIGHT},
            extra_http_headers={"Accept-Language": ACCEPT_LANGUAGE},
        )
        page = context.new_page()
        page.set_default_navigation_timeout(self._timeout * 1000)
        page.add_init_script(WEBDRIVER_OVERRIDE_JS)

        cdp = context.new_cdp_session(page)
        cdp.send("Network.enable")
        cdp.send(
            "Network.setUserAgentOverride",
            {
                "userAgent": DESKTOP_USER_AGENT,
                "acceptLanguage": ACCEPT_LANGUAGE,
                "platform": DESKTOP_PLATFORM,
            },
        )
        return context, page

    def interact(self, page: Any, worker_id: str) -> bool:
        """Replay a randomized pointer path and one scroll.

        Failures are logged and swallowed; returns ``False`` when interaction
        was cut short.
        """
        plan = self._interaction.plan()
        try:
            for (x, y), delay_ms in zip(plan.points, plan.delays_ms):
                page.mouse.move(x, y)
                page.wait_for_timeout(delay_ms)
            page.mouse.wheel(0, plan.scroll_delta)
        except PlaywrightError as exc:
            logger.debug("Interaction failed: %s", exc)
            self._events.log(worker_id, "BROWSER_INTERACT_FAIL", "Pointer simulation failed", str(exc))
            return False
        return True

    def poll(self, context: Any, page: Any) -> str:
        """Wait for the success cookie or a success marker in the page.

        Returns all cookies joined into header form at the moment the first
        indicator is seen. Raises :class:`ChallengeTimeout` at the deadline.
        """
        deadline = self._clock() + self._timeout

        while self._clock() < deadline:
            try:
                cookies = context.cookies()
            except PlaywrightError:
                cookies = []
            if any(c.get("name") == self._success_cookie for c in cookies):
                return join_cookies(cookies)

            try:
                content = page.content()
            except PlaywrightError:
                # Page is mid-navigation while the challenge redirects
                content = ""
            if has_success_marker(content):
                return join_cookies(cookies)

            page.wait_for_timeout(self._poll_interval_ms)

        raise ChallengeTimeout(f"No clearance within {self._timeout:.0f}s")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _transition(self, attempt: ChallengeAttempt, state: SolverState, meta: Any = None) -> None:
        attempt.state = state
        attempt.history.append(state)
        logger.debug("Escalation for %s → %s", attempt.worker_id, state.value)
        if state in STAGE_EVENTS:
            event, message = STAGE_EVENTS[state]
            self._events.log(attempt.worker_id, event, message, meta)

    def _fail(self, attempt: ChallengeAttempt, message: str) -> None:
        self._transition(attempt, SolverState.FAILED)
        self._events.log(attempt.worker_id, "BROWSER_FAIL", message, {"state": attempt.history[-2].value})

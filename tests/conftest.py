"""Shared test fixtures for the probe test suite."""

from __future__ import annotations

import os

import pytest

from edgeprobe.config.settings import ProbeSettings
from edgeprobe.proxy.manager import EgressPool
from edgeprobe.telemetry.counters import Telemetry
from tests.fakes import RecordingEventLog


# ---------------------------------------------------------------------------
# Keep PROBE_* variables from the developer's shell out of the tests
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _clean_probe_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("PROBE_"):
            monkeypatch.delenv(key)


# ---------------------------------------------------------------------------
# Settings fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path) -> ProbeSettings:
    """Test settings with safe defaults."""
    return ProbeSettings(
        target_url="https://target.test/",
        concurrency=2,
        proxies=["http://proxy1:8080", "http://proxy2:8080"],
        log_dir=str(tmp_path / "logs"),
        credential_path=str(tmp_path / "clearance_cookie.txt"),
        idle_interval_ms=1,
        cycle_interval_ms=1,
    )


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def pool(settings: ProbeSettings) -> EgressPool:
    return EgressPool(
        settings.proxies,
        failure_threshold=settings.node_failure_threshold,
        cooldown_seconds=settings.node_cooldown_seconds,
    )


@pytest.fixture
def telemetry() -> Telemetry:
    return Telemetry()


@pytest.fixture
def event_log() -> RecordingEventLog:
    return RecordingEventLog()


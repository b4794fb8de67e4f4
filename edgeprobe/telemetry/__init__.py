"""Telemetry: attempt counters and the structured event log."""

from edgeprobe.telemetry.counters import Telemetry, TelemetrySnapshot
from edgeprobe.telemetry.event_log import EventJsonFormatter, EventLog, NullEventLog

__all__ = [
    "EventJsonFormatter",
    "EventLog",
    "NullEventLog",
    "Telemetry",
    "TelemetrySnapshot",
]

"""Per-session JSON Lines event log.

``EventLog.log(worker_id, event, message, meta)`` is fire-and-forget: the
record is pushed onto a bounded queue without blocking and a single
``QueueListener`` thread appends it to ``<log_dir>/session_<unix>.jsonl``.
Records from one worker keep their order because the queue is FIFO. When
the queue is full the record is dropped and counted. No error raised while
logging ever reaches the caller.
"""

from __future__ import annotations

import json
import logging
import queue
import time
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from typing import Any

from edgeprobe.middleware.error_handler import LoggingError

logger = logging.getLogger(__name__)


class EventJsonFormatter(logging.Formatter):
    """One JSON object per line: ts (ms), worker, event, msg, meta."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": int(record.created * 1000),
            "worker": getattr(record, "worker", None),
            "event": getattr(record, "event", None),
            "msg": record.getMessage(),
            "meta": getattr(record, "meta", None),
        }
        return json.dumps(entry, default=str)


class _DroppingQueueHandler(QueueHandler):
    """QueueHandler that drops records instead of blocking when full."""

    def __init__(self, event_queue: queue.Queue) -> None:
        super().__init__(event_queue)
        self.dropped = 0

    def enqueue(self, record: logging.LogRecord) -> None:
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            self.dropped += 1

    def handleError(self, record: logging.LogRecord) -> None:
        self.dropped += 1


class EventLog:
    """Asynchronous structured event sink for engine workers."""

    def __init__(self, path: Path, *, queue_size: int = 10000) -> None:
        self.path = path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        except OSError as exc:
            raise LoggingError(f"Failed to open event log {path}: {exc}") from exc

        self._file_handler.setFormatter(EventJsonFormatter())
        self._queue: queue.Queue = queue.Queue(maxsize=queue_size)
        self._handler = _DroppingQueueHandler(self._queue)
        self._listener = QueueListener(self._queue, self._file_handler)

        # Detached from the logging hierarchy so root handlers never see events
        self._logger = logging.Logger("edgeprobe.events", level=logging.INFO)
        self._logger.propagate = False
        self._logger.addHandler(self._handler)

        self._closed = False
        self._listener.start()

    @classmethod
    def open(cls, log_dir: str | Path, *, queue_size: int = 10000) -> "EventLog":
        """Create ``<log_dir>/session_<unix>.jsonl`` and start the writer."""
        filename = f"session_{int(time.time())}.jsonl"
        event_log = cls(Path(log_dir) / filename, queue_size=queue_size)
        logger.info("Event log opened at %s", event_log.path)
        return event_log

    @property
    def dropped(self) -> int:
        """Number of events discarded because the queue was full or broken."""
        return self._handler.dropped

    def log(
        self,
        worker_id: str,
        event: str,
        message: str,
        meta: Any = None,
    ) -> None:
        """Queue one event. Never blocks and never raises."""
        if self._closed:
            return
        try:
            self._logger.info(
                message,
                extra={"worker": worker_id, "event": event, "meta": meta},
            )
        except Exception:  # noqa: BLE001
            self._handler.dropped += 1

    def close(self) -> None:
        """Flush queued events and close the file."""
        if self._closed:
            return
        self._closed = True
        self._listener.stop()
        self._file_handler.close()


class NullEventLog:
    """Event sink that discards everything; used when no file sink is wanted."""

    dropped = 0

    def log(self, worker_id: str, event: str, message: str, meta: Any = None) -> None:
        return None

    def close(self) -> None:
        return None

"""Write-through sink for solved clearance credentials.

Each solved challenge overwrites a single well-known file with the latest
credential string so out-of-band tools can pick it up.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

logger = logging.getLogger(__name__)


class CredentialSink:
    """Overwrites ``path`` with the most recent credential."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self.writes = 0

    def write(self, credential: str) -> None:
        """Replace the file contents with *credential*.

        The value is written to a sibling temp file first and renamed over
        the target, so readers never observe a partial credential.
        """
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(credential + "\n", encoding="utf-8")
            os.replace(tmp_path, self.path)
            self.writes += 1
        logger.info("Clearance credential written to %s", self.path)

    def read(self) -> str | None:
        """Return the stored credential, or ``None`` if none was written yet."""
        try:
            return self.path.read_text(encoding="utf-8").rstrip("\n")
        except FileNotFoundError:
            return None

"""
Blob store for uploaded captures, with deferred deletion.

Uploaded bytes are kept on disk for a retention window after analysis and
then removed by a daemon `threading.Timer`. Pending timers are tracked so
they can be cancelled on shutdown (and in tests).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict
import logging
import threading

from werkzeug.utils import secure_filename

from pcap_analyzer.ports import BlobStorePort

logger = logging.getLogger(__name__)


@dataclass
class FilesystemBlobStore(BlobStorePort):
    """
    Attributes:
        root: Directory receiving uploaded files (UPLOAD_FOLDER).

    State (protected by _lock):
        _timers: pending deferred deletions keyed by blob id.
    """
    root: Path

    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _timers: Dict[str, threading.Timer] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self.root = Path(self.root)
        self.root.mkdir(parents=True, exist_ok=True)

    # ---------------------------- Public methods ---------------------------

    def put(self, filename: str, payload: bytes) -> str:
        """Write `payload` under a timestamped, sanitized name; return that name."""
        ts = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        blob_id = f"{ts}_{secure_filename(filename) or 'capture'}"
        (self.root / blob_id).write_bytes(payload)
        logger.info("Stored upload as %s (%d bytes)", blob_id, len(payload))
        return blob_id

    def path_of(self, blob_id: str) -> Path:
        return self.root / secure_filename(blob_id)

    def delete(self, blob_id: str) -> bool:
        with self._lock:
            timer = self._timers.pop(blob_id, None)
        if timer is not None:
            timer.cancel()
        try:
            self.path_of(blob_id).unlink()
        except FileNotFoundError:
            return False
        logger.info("Temp file %s deleted", blob_id)
        return True

    def schedule_delete(self, blob_id: str, delay_seconds: float) -> threading.Timer:
        """Delete `blob_id` after `delay_seconds`; returns the (started) timer."""
        timer = threading.Timer(delay_seconds, self._expire, args=(blob_id,))
        timer.daemon = True
        with self._lock:
            previous = self._timers.pop(blob_id, None)
            self._timers[blob_id] = timer
        if previous is not None:
            previous.cancel()
        timer.start()
        logger.debug("Scheduled deletion of %s in %.0fs", blob_id, delay_seconds)
        return timer

    def pending(self) -> int:
        with self._lock:
            return len(self._timers)

    def cancel_pending(self) -> None:
        """Cancel every scheduled deletion (files are left in place)."""
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for t in timers:
            t.cancel()

    # --------------------------- Private helpers ---------------------------

    def _expire(self, blob_id: str) -> None:
        with self._lock:
            self._timers.pop(blob_id, None)
        try:
            self.path_of(blob_id).unlink()
            logger.info("Temp file %s deleted", blob_id)
        except FileNotFoundError:
            pass
        except OSError:
            logger.exception("Error deleting temp file %s", blob_id)

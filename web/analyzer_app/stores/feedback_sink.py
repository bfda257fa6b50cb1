"""
Feedback sink: appends each submission as one JSON line and logs it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict
import json
import logging
import threading

from pcap_analyzer.ports import FeedbackSinkPort

from ..utils import utcnow_iso

logger = logging.getLogger(__name__)


@dataclass
class FileFeedbackSink(FeedbackSinkPort):
    path: Path

    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def submit(self, feedback: Dict[str, str]) -> None:
        entry = {
            "name": feedback["name"],
            "email": feedback["email"],
            "message": feedback["message"],
            "createdAt": utcnow_iso(),
        }
        path = Path(self.path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            with path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False) + "\n")
        logger.info("Feedback received from %s", entry["email"])

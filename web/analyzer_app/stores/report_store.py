"""
Filesystem report store.

Each report is one JSON file `<report_dir>/<report_id>.json` holding the
caller's record plus `_id` and `createdAt`. Listing scans the directory and
sorts newest first. Report ids are restricted to a safe alphabet so an id
taken from a URL can never address a file outside the report directory.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
import json
import logging
import re
import threading
import time
import uuid

from pcap_analyzer.ports import ReportStorePort

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"[A-Za-z0-9_-]{1,128}")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class FilesystemReportStore(ReportStorePort):
    """
    Attributes:
        report_dir: Directory holding one JSON file per report.
        clock: Source of `createdAt` timestamps (UTC).
    """
    report_dir: Path
    clock: Callable[[], datetime] = _utcnow

    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        self.report_dir = Path(self.report_dir)
        self.report_dir.mkdir(parents=True, exist_ok=True)

    # ---------------------------- Public methods ---------------------------

    def save(self, record: Dict[str, Any]) -> str:
        """Persist a {reportName, reportType, data, userId} record; return its id."""
        report_id = f"local_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
        stored = {
            "_id": report_id,
            "userId": record.get("userId") or "anonymous",
            "reportName": record["reportName"],
            "reportType": record["reportType"],
            "data": record["data"],
            "createdAt": self.clock().isoformat(),
        }
        path = self.report_dir / f"{report_id}.json"
        with self._lock:
            with path.open("w", encoding="utf-8") as f:
                json.dump(stored, f, indent=2)
        logger.info("Report saved locally to: %s", path)
        return report_id

    def get(self, report_id: str) -> Optional[Dict[str, Any]]:
        path = self._path_for(report_id)
        if path is None or not path.exists():
            return None
        return self._load(path)

    def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        """Return all reports of `user_id`, newest first."""
        reports: List[Dict[str, Any]] = []
        for path in self.report_dir.glob("*.json"):
            data = self._load(path)
            if data is not None and data.get("userId") == user_id:
                reports.append(data)
        reports.sort(key=lambda r: _parse_ts(r.get("createdAt")), reverse=True)
        logger.info("Found %d reports locally for user %s", len(reports), user_id)
        return reports

    def delete(self, report_id: str) -> bool:
        path = self._path_for(report_id)
        if path is None:
            return False
        with self._lock:
            try:
                path.unlink()
            except FileNotFoundError:
                return False
        logger.info("Report deleted locally: %s", report_id)
        return True

    # --------------------------- Private helpers ---------------------------

    def _path_for(self, report_id: str) -> Optional[Path]:
        if not _SAFE_ID.fullmatch(report_id or ""):
            return None
        return self.report_dir / f"{report_id}.json"

    @staticmethod
    def _load(path: Path) -> Optional[Dict[str, Any]]:
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError):
            logger.exception("Error reading local report file %s", path)
            return None
        return data if isinstance(data, dict) else None


def _parse_ts(value: Any) -> datetime:
    try:
        ts = datetime.fromisoformat(str(value))
    except ValueError:
        return datetime.min.replace(tzinfo=timezone.utc)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts

"""
Interfaces (Ports) for the collaborators an analysis result is handed to.

The core never calls these itself: it returns an AnalysisResult and the
embedding service decides where it goes. Keep them small so they are easy
to fake in tests.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol


class ReportStorePort(Protocol):
    """
    Stores report records shaped {reportName, reportType, data, userId}.
    Stored records additionally carry `_id` and `createdAt`.
    """

    def save(self, record: Dict[str, Any]) -> str:
        """Persist one record and return its opaque identifier."""
        ...

    def get(self, report_id: str) -> Optional[Dict[str, Any]]:
        ...

    def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        """Return the user's records, newest first."""
        ...

    def delete(self, report_id: str) -> bool:
        """Delete one record; False if it did not exist."""
        ...


class FeedbackSinkPort(Protocol):
    """Fire-and-forget sink for {name, email, message}."""

    def submit(self, feedback: Dict[str, str]) -> None:
        ...


class BlobStorePort(Protocol):
    """
    Retains raw uploaded capture bytes for audit with deferred deletion.
    Analysis must never depend on this store being available.
    """

    def put(self, filename: str, payload: bytes) -> str:
        """Store bytes and return a blob id."""
        ...

    def schedule_delete(self, blob_id: str, delay_seconds: float) -> None:
        """Delete the blob after ``delay_seconds``."""
        ...

    def delete(self, blob_id: str) -> bool:
        ...

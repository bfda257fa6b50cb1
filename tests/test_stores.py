from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from analyzer_app.stores.blob_store import FilesystemBlobStore
from analyzer_app.stores.feedback_sink import FileFeedbackSink
from analyzer_app.stores.report_store import FilesystemReportStore


class _StepClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


def _record(name: str, user: str = "alice") -> dict:
    return {"reportName": name, "reportType": "JSON", "data": {"totalPackets": 1}, "userId": user}


# --- report store ---


def test_report_save_get_delete(tmp_path):
    store = FilesystemReportStore(report_dir=tmp_path / "reports")
    report_id = store.save(_record("first"))

    assert report_id.startswith("local_")
    stored = store.get(report_id)
    assert stored["_id"] == report_id
    assert stored["reportName"] == "first"
    assert stored["data"] == {"totalPackets": 1}
    assert "createdAt" in stored

    assert store.delete(report_id) is True
    assert store.get(report_id) is None
    assert store.delete(report_id) is False


def test_report_list_is_per_user_and_newest_first(tmp_path):
    store = FilesystemReportStore(report_dir=tmp_path, clock=_StepClock())
    store.save(_record("old"))
    store.save(_record("other", user="bob"))
    store.save(_record("new"))

    assert [r["reportName"] for r in store.list_for_user("alice")] == ["new", "old"]
    assert [r["reportName"] for r in store.list_for_user("bob")] == ["other"]
    assert store.list_for_user("carol") == []


def test_report_missing_user_becomes_anonymous(tmp_path):
    store = FilesystemReportStore(report_dir=tmp_path)
    rid = store.save({"reportName": "x", "reportType": "CSV", "data": {}, "userId": None})
    assert store.get(rid)["userId"] == "anonymous"


def test_report_ids_cannot_escape_directory(tmp_path):
    (tmp_path / "secret.json").write_text(json.dumps({"userId": "x"}))
    store = FilesystemReportStore(report_dir=tmp_path / "reports")
    assert store.get("../secret") is None
    assert store.delete("../secret") is False
    assert (tmp_path / "secret.json").exists()


@pytest.mark.parametrize("report_id", ["abc\n", "abc\r", " abc", "abc/", ""])
def test_report_ids_must_match_entirely(tmp_path, report_id):
    store = FilesystemReportStore(report_dir=tmp_path)
    (tmp_path / "abc\n.json").write_text(json.dumps({"_id": "abc", "userId": "x"}))

    assert store.get(report_id) is None
    assert store.delete(report_id) is False
    assert (tmp_path / "abc\n.json").exists()


def test_report_list_skips_unreadable_files(tmp_path):
    store = FilesystemReportStore(report_dir=tmp_path)
    store.save(_record("ok"))
    (tmp_path / "broken.json").write_text("{not json")
    assert [r["reportName"] for r in store.list_for_user("alice")] == ["ok"]


# --- feedback sink ---


def test_feedback_appends_json_lines(tmp_path):
    sink = FileFeedbackSink(path=tmp_path / "logs" / "feedback.jsonl")
    sink.submit({"name": "A", "email": "a@example.com", "message": "hello"})
    sink.submit({"name": "B", "email": "b@example.com", "message": "bye"})

    lines = (tmp_path / "logs" / "feedback.jsonl").read_text(encoding="utf-8").splitlines()
    entries = [json.loads(line) for line in lines]
    assert [e["name"] for e in entries] == ["A", "B"]
    assert entries[0]["createdAt"].endswith("Z")


# --- blob store ---


def test_blob_put_sanitizes_name(tmp_path):
    store = FilesystemBlobStore(root=tmp_path)
    blob_id = store.put("../../etc/evil capture.pcap", b"abc")

    assert "/" not in blob_id
    assert blob_id.endswith("etc_evil_capture.pcap")
    assert store.path_of(blob_id).read_bytes() == b"abc"
    assert store.path_of(blob_id).parent == tmp_path


def test_blob_scheduled_delete_runs(tmp_path):
    store = FilesystemBlobStore(root=tmp_path)
    blob_id = store.put("a.pcap", b"abc")

    timer = store.schedule_delete(blob_id, 0)
    timer.join(timeout=5)

    assert not store.path_of(blob_id).exists()
    assert store.pending() == 0


def test_blob_delete_cancels_pending_timer(tmp_path):
    store = FilesystemBlobStore(root=tmp_path)
    blob_id = store.put("a.pcap", b"abc")
    store.schedule_delete(blob_id, 3600)
    assert store.pending() == 1

    assert store.delete(blob_id) is True
    assert store.pending() == 0
    assert store.delete(blob_id) is False


def test_blob_cancel_pending_keeps_files(tmp_path):
    store = FilesystemBlobStore(root=tmp_path)
    blob_id = store.put("a.pcap", b"abc")
    store.schedule_delete(blob_id, 3600)

    store.cancel_pending()
    assert store.pending() == 0
    assert store.path_of(blob_id).exists()

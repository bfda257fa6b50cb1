"""
Upload route: validate a capture upload, retain it, analyze it.

The blob store is optional: if it is missing or fails, the analysis still
runs on the in-memory upload. Retained uploads are deleted after
UPLOAD_RETENTION_SECONDS, or at once when the capture fails to parse.

gzip/zstd uploads are decompressed up to MAX_DECOMPRESSED_BYTES; past that
the upload is rejected like an oversized body (413).
"""

from __future__ import annotations

import io
from typing import Optional

from flask import Blueprint, current_app, jsonify, request

from pcap_analyzer import AnalysisFailed, AnalyzerConfig, CaptureTooLarge, analyze
from pcap_analyzer.intake.source import open_capture_stream

from analyzer_app.utils import allowed_file

bp = Blueprint("upload", __name__, url_prefix="/api")


@bp.route("/upload", methods=["POST"])
def upload_capture():
    """Analyze the uploaded `pcapFile`; the analysis result is the response body."""
    file = request.files.get("pcapFile")
    if file is None or not file.filename:
        return jsonify({"success": False, "error": "No file uploaded"}), 400

    if not allowed_file(file.filename, current_app.config["ALLOWED_EXTENSIONS"]):
        return jsonify({"success": False, "error": "Only .pcap files are allowed"}), 400

    payload = file.read()
    blob_store = current_app.extensions.get("blob_store")
    blob_id: Optional[str] = None
    if blob_store is not None:
        try:
            blob_id = blob_store.put(file.filename, payload)
        except OSError:
            current_app.logger.exception("Error storing upload; continuing with in-memory analysis")

    cfg: AnalyzerConfig = current_app.extensions["analyzer_cfg"]
    max_bytes = current_app.config["MAX_DECOMPRESSED_BYTES"]
    try:
        with open_capture_stream(io.BytesIO(payload), max_bytes=max_bytes) as stream:
            result = analyze(stream, cfg)
    except AnalysisFailed as e:
        if blob_id is not None:
            blob_store.delete(blob_id)
        if isinstance(e.cause, CaptureTooLarge):
            current_app.logger.warning("Rejected %s: %s", file.filename, e.cause)
            return jsonify({"success": False, "error": "File too large"}), 413
        current_app.logger.exception("PCAP parsing error in %s", file.filename)
        return jsonify({"success": False, "error": "Failed to parse PCAP file."}), 500

    if blob_id is not None:
        blob_store.schedule_delete(blob_id, current_app.config["UPLOAD_RETENTION_SECONDS"])

    return jsonify({"success": True, **result.to_dict()})

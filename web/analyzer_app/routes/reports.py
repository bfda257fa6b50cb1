"""
Report routes: save, list, view, download and delete stored reports.

A report wraps an analysis result chosen by the caller:
    {"reportName": "...", "reportType": "PDF|JSON|CSV", "data": {...}, "userId": "..."}
"""

from __future__ import annotations

import io

from flask import Blueprint, current_app, jsonify, request, send_file
from pydantic import ValidationError
from werkzeug.utils import secure_filename

from analyzer_app.report import render_report
from analyzer_app.schemas import ReportIn

bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _store():
    return current_app.extensions.get("report_store")


def _unavailable():
    return jsonify({"success": False, "error": "Report storage unavailable"}), 500


@bp.route("", methods=["POST"])
def save_report():
    store = _store()
    if store is None:
        return _unavailable()

    body = request.get_json(silent=True) or {}
    try:
        report = ReportIn.model_validate(body)
    except ValidationError as e:
        if any(err["loc"] == ("reportType",) and err["type"] == "literal_error" for err in e.errors()):
            return jsonify({"success": False, "error": "reportType must be one of PDF, JSON, CSV"}), 400
        return jsonify({"success": False, "error": "Report name, type, and data are required"}), 400

    report_id = store.save(report.to_record())
    return jsonify({"success": True, "message": "Report saved successfully", "reportId": report_id}), 201


@bp.route("/<user_id>", methods=["GET"])
def list_reports(user_id: str):
    """Reports of one user, newest first."""
    store = _store()
    if store is None:
        return _unavailable()
    return jsonify(store.list_for_user(user_id or "anonymous"))


@bp.route("/view/<report_id>", methods=["GET"])
def view_report(report_id: str):
    store = _store()
    if store is None:
        return _unavailable()
    report = store.get(report_id)
    if report is None:
        return jsonify({"success": False, "error": "Report not found"}), 404
    return jsonify(report)


@bp.route("/download/<report_id>", methods=["GET"])
def download_report(report_id: str):
    """Render the report in its reportType (PDF, CSV or JSON) as an attachment."""
    store = _store()
    if store is None:
        return _unavailable()
    report = store.get(report_id)
    if report is None:
        return jsonify({"success": False, "error": "Report not found"}), 404

    try:
        payload, mimetype, ext = render_report(report)
    except Exception as e:
        current_app.logger.exception("Report rendering failed for %s", report_id)
        return jsonify({"success": False, "error": f"Report generation failed: {e}"}), 500

    name = secure_filename(str(report.get("reportName") or report_id)) or report_id
    return send_file(
        io.BytesIO(payload),
        mimetype=mimetype,
        as_attachment=True,
        download_name=f"{name}.{ext}",
        max_age=0,
    )


@bp.route("/<report_id>", methods=["DELETE"])
def delete_report(report_id: str):
    store = _store()
    if store is None:
        return _unavailable()
    if not store.delete(report_id):
        return jsonify({"success": False, "error": "Report not found"}), 404
    return jsonify({"success": True, "message": "Report deleted successfully"})

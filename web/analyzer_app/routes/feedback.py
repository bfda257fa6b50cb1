from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from analyzer_app.schemas import FeedbackIn

bp = Blueprint("feedback", __name__, url_prefix="/api")


@bp.route("/feedback", methods=["POST"])
def submit_feedback():
    """
    Accept {name, email, message}. Storage failures are logged and do not
    fail the request.
    """
    body = request.get_json(silent=True) or {}
    try:
        feedback = FeedbackIn.model_validate(body)
    except ValidationError:
        return jsonify({"success": False, "error": "All fields are required"}), 400

    sink = current_app.extensions.get("feedback_sink")
    if sink is None:
        current_app.logger.info("Feedback received (no sink configured) from %s", feedback.email)
    else:
        try:
            sink.submit(feedback.model_dump())
        except OSError:
            current_app.logger.exception("Error saving feedback")

    return jsonify({"success": True, "message": "Feedback submitted successfully"}), 201

"""
Flask app factory: registers config, logging, collaborators, blueprints, and error handlers.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Type

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from pcap_analyzer import AnalyzerConfig

from analyzer_app.config import Config, DevelopmentConfig, ProductionConfig
from analyzer_app.utils import ensure_dirs, init_logging
from analyzer_app.stores.blob_store import FilesystemBlobStore
from analyzer_app.stores.feedback_sink import FileFeedbackSink
from analyzer_app.stores.report_store import FilesystemReportStore
from analyzer_app.routes import upload as upload_bp
from analyzer_app.routes import feedback as feedback_bp
from analyzer_app.routes import reports as reports_bp


def create_app(config_class: Type[Config] | None = None) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)

    # Config selection
    cfg: Type[Config]
    env = os.getenv("FLASK_ENV", "production").lower()
    if config_class is not None:
        cfg = config_class
    elif env.startswith("dev"):
        cfg = DevelopmentConfig
    else:
        cfg = ProductionConfig
    app.config.from_object(cfg)

    # Ensure folders
    upload_dir = Path(app.config["UPLOAD_FOLDER"])
    report_dir = Path(app.config["REPORT_FOLDER"])
    log_dir = Path(app.config["LOG_FOLDER"])
    ensure_dirs(upload_dir, report_dir, log_dir)

    # Sessions
    app.secret_key = app.config["SECRET_KEY"]

    # Logging
    logger = init_logging(app)
    app.logger = logger  # align Flask's logger with ours

    # Analysis options (validated once; bad env values fail at startup)
    app.extensions["analyzer_cfg"] = AnalyzerConfig(
        truncation_policy=app.config["ANALYSIS_TRUNCATION_POLICY"],
    )

    # Collaborators, stored in the extensions registry so tests can swap them
    app.extensions["blob_store"] = FilesystemBlobStore(root=upload_dir)
    app.extensions["report_store"] = FilesystemReportStore(report_dir=report_dir)
    app.extensions["feedback_sink"] = FileFeedbackSink(path=log_dir / "feedback.jsonl")

    # Security-ish headers
    @app.after_request
    def set_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        return resp

    # Error handlers
    @app.errorhandler(RequestEntityTooLarge)
    def handle_file_too_large(_e):
        return jsonify({"success": False, "error": "File too large"}), 413

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        return jsonify({"success": False, "error": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_exception(e: Exception):
        app.logger.exception("Unhandled error")
        return jsonify({"success": False, "error": "Internal server error"}), 500

    # Blueprints
    app.register_blueprint(upload_bp.bp)
    app.register_blueprint(feedback_bp.bp)
    app.register_blueprint(reports_bp.bp)

    # Health
    @app.route("/healthz")
    def healthz():
        return jsonify({"status": "ok"}), 200

    return app

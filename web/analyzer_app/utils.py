"""
Utility helpers: directory setup, logging config, filename checks, and time utils.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from datetime import datetime, timezone
from flask import Flask

# Loggers that share the app's handlers: the web layer and the analysis core.
_LOGGER_NAMES = ("analyzer_app", "pcap_analyzer")


def ensure_dirs(*paths: Path) -> None:
    """Ensure each directory exists."""
    for p in paths:
        p.mkdir(parents=True, exist_ok=True)


def init_logging(app: Flask) -> logging.Logger:
    """Configure a console logger + rotating file handler; safe to call per app."""
    log_level = getattr(logging, app.config["LOG_LEVEL"].upper(), logging.INFO)
    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")

    log_file = Path(app.config["LOG_FILE"])
    ensure_dirs(log_file.parent)

    for name in _LOGGER_NAMES:
        logger = logging.getLogger(name)
        logger.setLevel(log_level)
        logger.propagate = False  # avoid duplicate logs if root has handlers

        # Repeated create_app() calls (tests, reloader) must not stack handlers
        for h in list(logger.handlers):
            logger.removeHandler(h)
            h.close()

        # Console
        ch = logging.StreamHandler()
        ch.setLevel(log_level)
        ch.setFormatter(formatter)
        logger.addHandler(ch)

        # File (rotating)
        fh = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=5)
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    logger = logging.getLogger(_LOGGER_NAMES[0])
    if app.config["SECRET_KEY"] == "dev-unsafe-change-this":
        logger.warning("Using default SECRET_KEY. Set FLASK_SECRET_KEY for production.")

    return logger


def allowed_file(filename: str, allowed: set[str]) -> bool:
    """Return True if the filename has an allowed extension."""
    return "." in filename and filename.rsplit(".", 1)[1].lower() in allowed


def utcnow_iso() -> str:
    """Return current UTC timestamp in ISO format with a Z suffix (millisecond precision)."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

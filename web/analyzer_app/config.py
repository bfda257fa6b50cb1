"""
Configuration objects for the Flask application.

Override via environment variables.
"""

from __future__ import annotations
import os


class Config:
    """Base configuration (safe defaults)."""

    # Security
    SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "dev-unsafe-change-this")

    # Storage
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "uploads")
    REPORT_FOLDER = os.getenv("REPORT_FOLDER", "reports")
    LOG_FOLDER = os.getenv("LOG_FOLDER", "logs")

    # Requests / uploads
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(10 * 1024 * 1024)))  # 10 MiB

    # Cap on the decompressed size of gzip/zstd uploads
    MAX_DECOMPRESSED_BYTES = int(os.getenv("MAX_DECOMPRESSED_BYTES", str(10 * 1024 * 1024)))  # 10 MiB

    # File types
    ALLOWED_EXTENSIONS = set(
        (os.getenv("ALLOWED_EXTENSIONS", "pcap")).split(",")
    )

    # Uploaded captures are deleted this long after analysis
    UPLOAD_RETENTION_SECONDS = float(os.getenv("UPLOAD_RETENTION_SECONDS", "300"))

    # Analysis: "fail" (discard on truncated capture) or "partial"
    ANALYSIS_TRUNCATION_POLICY = os.getenv("ANALYSIS_TRUNCATION_POLICY", "fail")

    # Logging
    LOG_FILE = os.getenv("APP_LOG_FILE", "logs/app.log")
    LOG_LEVEL = os.getenv("APP_LOG_LEVEL", "INFO")


class ProductionConfig(Config):
    """Production overrides."""
    LOG_LEVEL = os.getenv("APP_LOG_LEVEL", "INFO")


class DevelopmentConfig(Config):
    """Development overrides."""
    LOG_LEVEL = os.getenv("APP_LOG_LEVEL", "DEBUG")

from __future__ import annotations

import socket
import struct
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import pytest

from analyzer_app import create_app
from analyzer_app.config import Config

ETH_HEADER = b"\x00\x11\x22\x33\x44\x55" + b"\x66\x77\x88\x99\xaa\xbb"


def _ipv4_frame(src: str, dst: str, proto: int = 6, payload: bytes = b"") -> bytes:
    ip = struct.pack(
        "!BBHHHBBH4s4s",
        0x45, 0, 20 + len(payload), 0, 0, 64, proto, 0,
        socket.inet_aton(src), socket.inet_aton(dst),
    )
    return ETH_HEADER + struct.pack("!H", 0x0800) + ip + payload


def _build_pcap(
    frames: Sequence[bytes],
    *,
    endian: str = "<",
    nano: bool = False,
    orig_lens: Optional[List[int]] = None,
    ts_sec: int = 1_700_000_000,
    ts_frac: int = 0,
) -> bytes:
    magic = 0xA1B23C4D if nano else 0xA1B2C3D4
    out = [struct.pack(endian + "IHHiIII", magic, 2, 4, 0, 0, 65535, 1)]
    for i, frame in enumerate(frames):
        orig = orig_lens[i] if orig_lens is not None else len(frame)
        out.append(struct.pack(endian + "IIII", ts_sec + i, ts_frac, len(frame), orig))
        out.append(frame)
    return b"".join(out)


@pytest.fixture()
def ipv4_frame() -> Callable[..., bytes]:
    """Ethernet + option-free IPv4 header (34 bytes plus payload)."""
    return _ipv4_frame


@pytest.fixture()
def build_pcap() -> Callable[..., bytes]:
    """libpcap container around raw frames; little-endian microsecond by default."""
    return _build_pcap


@pytest.fixture()
def app_config(tmp_path: Path):
    class TestConfig(Config):
        TESTING = True
        SECRET_KEY = "test-secret"
        UPLOAD_FOLDER = str(tmp_path / "uploads")
        REPORT_FOLDER = str(tmp_path / "reports")
        LOG_FOLDER = str(tmp_path / "logs")
        LOG_FILE = str(tmp_path / "logs" / "app.log")
        LOG_LEVEL = "DEBUG"
        UPLOAD_RETENTION_SECONDS = 300.0
        ANALYSIS_TRUNCATION_POLICY = "fail"

    return TestConfig


@pytest.fixture()
def app(app_config):
    app = create_app(app_config)
    yield app
    app.extensions["blob_store"].cancel_pending()


@pytest.fixture()
def client(app):
    return app.test_client()

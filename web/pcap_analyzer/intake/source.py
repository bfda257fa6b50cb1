"""
Capture source opener.

Provides `open_capture(path)` and `open_capture_stream(raw)`, context
managers returning a binary stream of raw pcap bytes regardless of whether
the input is plain, gzip-compressed or zstd-compressed. Compression is
detected from magic bytes, not from the filename.

This module does not parse pcap; it only handles decompression. Errors the
decompressor raises while reading are reported as MalformedContainer.
"""

from __future__ import annotations

import gzip
import os
import zlib
from contextlib import contextmanager
from typing import IO, Final, Generator, Literal, Optional

import zstandard  # type: ignore

from ..errors import CaptureTooLarge, MalformedContainer

Compressor = Literal["none", "gzip", "zstd"]

MAGIC_GZIP: Final[bytes] = bytes.fromhex("1f8b")
MAGIC_ZSTD: Final[bytes] = bytes.fromhex("28b52ffd")


def sniff_compressor(head: bytes) -> Compressor:
    """Classify the first bytes of a capture as gzip, zstd or uncompressed."""
    if head[:2] == MAGIC_GZIP:
        return "gzip"
    if head[:4] == MAGIC_ZSTD:
        return "zstd"
    return "none"


class _DecompressedStream:
    """
    Read-only wrapper translating decompressor failures into MalformedContainer.

    With ``max_bytes`` set, producing more than that many decompressed bytes
    raises CaptureTooLarge.
    """

    def __init__(self, inner, compressor: Compressor, max_bytes: Optional[int] = None) -> None:
        self._inner = inner
        self.compressor = compressor
        self.max_bytes = max_bytes
        self.produced = 0

    def read(self, size: int = -1) -> bytes:
        if self.max_bytes is not None:
            # one byte past the limit is enough to detect the overrun
            budget = self.max_bytes - self.produced + 1
            if size is None or size < 0 or size > budget:
                size = budget
        try:
            data = self._inner.read(size)
        except (OSError, EOFError, zlib.error, zstandard.ZstdError) as e:
            raise MalformedContainer(f"corrupt {self.compressor} capture: {e}") from e
        self.produced += len(data)
        if self.max_bytes is not None and self.produced > self.max_bytes:
            raise CaptureTooLarge(self.max_bytes)
        return data

    def close(self) -> None:
        self._inner.close()


@contextmanager
def open_capture_stream(raw: IO[bytes], max_bytes: Optional[int] = None) -> Generator[IO[bytes], None, None]:
    """
    Yield a readable stream of uncompressed capture bytes over ``raw``.

    ``raw`` must be seekable (a file or BytesIO); the first four bytes are
    peeked to pick the decompressor. The caller keeps ownership of ``raw``.

    ``max_bytes`` caps the decompressed size of gzip/zstd input; uncompressed
    input is passed through as is and is bounded by whoever produced ``raw``.
    """
    start = raw.tell()
    head = raw.read(4)
    raw.seek(start)

    comp = sniff_compressor(head)
    if comp == "none":
        yield raw
        return

    if comp == "gzip":
        inner = gzip.GzipFile(fileobj=raw, mode="rb")
    else:
        inner = zstandard.ZstdDecompressor().stream_reader(raw, closefd=False)

    stream = _DecompressedStream(inner, comp, max_bytes)
    try:
        yield stream  # type: ignore[misc]
    finally:
        stream.close()


@contextmanager
def open_capture(
    path: str | os.PathLike, max_bytes: Optional[int] = None
) -> Generator[IO[bytes], None, None]:
    """Open a capture file from disk; the file is closed on every exit path."""
    with open(path, "rb") as raw:
        with open_capture_stream(raw, max_bytes) as stream:
            yield stream

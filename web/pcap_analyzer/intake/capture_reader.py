"""
Capture reader: yields RawFrame records from a libpcap byte stream.

- The 24-byte global header is read and validated eagerly, so a bad
  container fails before any frame is produced.
- Record headers are unpacked with dpkt's pcap header structs; the record
  loop itself is ours so that a short record raises TruncatedFrame instead
  of silently yielding a cut-off buffer.
- Microsecond and nanosecond pcaps in either byte order are accepted.
  pcapng is recognized and rejected.
"""

from __future__ import annotations

from typing import IO, Iterator, Optional, Type

import dpkt  # type: ignore

from ..dto import RawFrame
from ..errors import MalformedContainer, TruncatedFrame

# Magic numbers as read with a big-endian FileHdr
_MAGIC_USEC = 0xA1B2C3D4
_MAGIC_NSEC = 0xA1B23C4D
_MAGIC_USEC_SWAPPED = 0xD4C3B2A1
_MAGIC_NSEC_SWAPPED = 0x4D3CB2A1
_MAGIC_PCAPNG = 0x0A0D0D0A

# Upper bound for a single read; a corrupt caplen must not size an allocation.
_READ_CHUNK = 64 * 1024


class CaptureReader:
    """
    Lazy, finite, non-restartable sequence of RawFrame over a pcap stream.

    Usage:
        reader = CaptureReader(stream)   # raises MalformedContainer
        for frame in reader:             # may raise TruncatedFrame
            ...

    Iterating a second time continues where the first iteration stopped.
    """

    def __init__(self, stream: IO[bytes]) -> None:
        self._stream = stream
        self.frames_read = 0

        head = _read_exact(stream, dpkt.pcap.FileHdr.__hdr_len__)
        if len(head) < dpkt.pcap.FileHdr.__hdr_len__:
            raise MalformedContainer(
                f"capture too short for a pcap global header ({len(head)} bytes)"
            )

        fh = dpkt.pcap.FileHdr(head)
        magic = fh.magic
        if magic in (_MAGIC_USEC_SWAPPED, _MAGIC_NSEC_SWAPPED):
            fh = dpkt.pcap.LEFileHdr(head)
            self._pkt_hdr: Type[dpkt.Packet] = dpkt.pcap.LEPktHdr
        elif magic in (_MAGIC_USEC, _MAGIC_NSEC):
            self._pkt_hdr = dpkt.pcap.PktHdr
        elif magic == _MAGIC_PCAPNG:
            raise MalformedContainer("pcapng captures are not supported; convert to pcap")
        else:
            raise MalformedContainer(f"unrecognized capture magic 0x{magic:08x}")

        self.nanosecond = magic in (_MAGIC_NSEC, _MAGIC_NSEC_SWAPPED)
        self.byte_order = "little" if self._pkt_hdr is dpkt.pcap.LEPktHdr else "big"
        self.snaplen = int(fh.snaplen)
        self.linktype = int(fh.linktype)
        self._divisor = 1e9 if self.nanosecond else 1e6
        self._frames = self._iter_records()

    def __iter__(self) -> Iterator[RawFrame]:
        return self._frames

    # --- record loop ---

    def _iter_records(self) -> Iterator[RawFrame]:
        hdr_len = self._pkt_hdr.__hdr_len__
        while True:
            head = _read_exact(self._stream, hdr_len)
            if not head:
                return  # clean end of capture
            if len(head) < hdr_len:
                raise TruncatedFrame(self.frames_read, hdr_len, len(head), what="record header")

            ph = self._pkt_hdr(head)
            caplen = int(ph.caplen)
            data = _read_exact(self._stream, caplen)
            if len(data) < caplen:
                raise TruncatedFrame(self.frames_read, caplen, len(data))

            self.frames_read += 1
            yield RawFrame(
                data=data,
                captured_length=caplen,
                original_length=int(ph.len),
                timestamp=ph.tv_sec + ph.tv_usec / self._divisor,
            )


def iter_frames(stream: IO[bytes]) -> Iterator[RawFrame]:
    """Convenience wrapper: validate the header now, iterate frames lazily."""
    return iter(CaptureReader(stream))


# === Helpers ===


def _read_exact(stream: IO[bytes], n: int) -> bytes:
    """
    Read up to ``n`` bytes, looping over short reads (decompressors return
    partial chunks). Returns fewer than ``n`` bytes only at end of stream.
    """
    if n <= 0:
        return b""
    parts = []
    remaining = n
    while remaining > 0:
        chunk: Optional[bytes] = stream.read(min(remaining, _READ_CHUNK))
        if not chunk:
            break
        parts.append(chunk)
        remaining -= len(chunk)
    return b"".join(parts)

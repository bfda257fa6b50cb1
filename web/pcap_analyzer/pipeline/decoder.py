"""
Frame decoder: fixed-offset field extraction from one Ethernet frame.

Layout assumed (no VLAN tag, no IPv4 options):

    offset 12..13  ethertype (big-endian)
    offset 23      IPv4 protocol number
    offset 26..29  IPv4 source address
    offset 30..33  IPv4 destination address

Tagged frames are skipped as non-IPv4. IPv4 headers with options are read at
the same fixed offsets.

`classify_frame` never raises: every read goes through a bounds-checked
accessor, and a frame that cannot be read is a Skipped outcome.
"""

from __future__ import annotations

import socket
import struct
from typing import Optional

import dpkt  # type: ignore

from ..dto import Decoded, DecodedPacket, FrameOutcome, RawFrame, Skipped

_ETHERTYPE_OFFSET = 12
_PROTO_OFFSET = 23
_SRC_OFFSET = 26
_DST_OFFSET = 30

_PROTOCOL_NAMES = {
    dpkt.ip.IP_PROTO_TCP: "TCP",
    dpkt.ip.IP_PROTO_UDP: "UDP",
    dpkt.ip.IP_PROTO_ICMP: "ICMP",
}


def classify_frame(frame: RawFrame) -> FrameOutcome:
    """Decode one frame into Decoded(packet) or Skipped(reason)."""
    buf = frame.data

    ethertype = _u16be(buf, _ETHERTYPE_OFFSET)
    if ethertype is None:
        return Skipped("too_short")
    if ethertype != dpkt.ethernet.ETH_TYPE_IP:
        return Skipped("non_ipv4", ethertype=ethertype)

    proto = _u8(buf, _PROTO_OFFSET)
    src = _ipv4(buf, _SRC_OFFSET)
    dst = _ipv4(buf, _DST_OFFSET)
    if proto is None or src is None or dst is None:
        return Skipped("truncated_ipv4", ethertype=ethertype)

    return Decoded(
        DecodedPacket(
            src_ip=src,
            dst_ip=dst,
            protocol=protocol_name(proto),
            size=frame.captured_length or frame.original_length or 0,
        )
    )


def decode(frame: RawFrame) -> Optional[DecodedPacket]:
    """Return the DecodedPacket for an IPv4 frame, else None."""
    outcome = classify_frame(frame)
    if isinstance(outcome, Decoded):
        return outcome.packet
    return None


def protocol_name(proto: int) -> str:
    """Map an IPv4 protocol number to TCP/UDP/ICMP or 'Unknown(N)'."""
    return _PROTOCOL_NAMES.get(proto, f"Unknown({proto})")


# === Bounds-checked accessors ===


def _u8(buf: bytes, offset: int) -> Optional[int]:
    if len(buf) < offset + 1:
        return None
    return buf[offset]


def _u16be(buf: bytes, offset: int) -> Optional[int]:
    if len(buf) < offset + 2:
        return None
    return struct.unpack_from("!H", buf, offset)[0]


def _ipv4(buf: bytes, offset: int) -> Optional[str]:
    if len(buf) < offset + 4:
        return None
    return socket.inet_ntop(socket.AF_INET, buf[offset:offset + 4])

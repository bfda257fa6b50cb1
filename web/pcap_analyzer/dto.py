"""
Data Transfer Objects used across the analysis pipeline.

Frames, decoded packets and findings are small and immutable; only the
aggregation state is mutable, and only while a single run owns it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Literal, Optional, Set, Union

ThreatType = Literal["Potential DDoS", "Potential Port Scan"]
SkipReason = Literal["too_short", "non_ipv4", "truncated_ipv4"]


# === Intake ===
@dataclass(frozen=True)
class RawFrame:
    """One link-layer frame as stored in the capture, plus its record header."""
    data: bytes
    captured_length: int     # caplen declared by the record header
    original_length: int     # length on the wire (may exceed caplen)
    timestamp: float         # epoch seconds


# === Decoder output ===
@dataclass(frozen=True)
class DecodedPacket:
    src_ip: str
    dst_ip: str
    protocol: str            # TCP | UDP | ICMP | Unknown(N)
    size: int

    def to_dict(self) -> Dict[str, object]:
        return {
            "srcIP": self.src_ip,
            "dstIP": self.dst_ip,
            "protocol": self.protocol,
            "packetSize": self.size,
        }


@dataclass(frozen=True)
class Decoded:
    packet: DecodedPacket


@dataclass(frozen=True)
class Skipped:
    """Frame counted but not detailed (too short, not IPv4, cut-off IPv4 header)."""
    reason: SkipReason
    ethertype: Optional[int] = None


FrameOutcome = Union[Decoded, Skipped]


# === Aggregation ===
@dataclass(frozen=True)
class ConnectionKey:
    """Directional (source, destination) pair; A->B and B->A are distinct."""
    src_ip: str
    dst_ip: str

    def __str__(self) -> str:
        return f"{self.src_ip}->{self.dst_ip}"


@dataclass
class AggregationState:
    """Per-run counters. Counts only increase and sets only grow."""
    connection_counts: Dict[ConnectionKey, int] = field(default_factory=dict)
    destinations_by_source: Dict[str, Set[str]] = field(default_factory=dict)


# === Findings / result ===
@dataclass(frozen=True)
class ThreatFinding:
    type: ThreatType
    description: str
    subject: str             # connection label or source address
    observed: int            # packet count or distinct destination count

    def to_dict(self) -> Dict[str, object]:
        return {"type": self.type, "description": self.description}


@dataclass(frozen=True)
class AnalysisResult:
    total_packets: int
    packet_details: List[DecodedPacket]
    threats: List[ThreatFinding]
    timestamp: datetime      # completion time, UTC
    partial: bool = False    # True only under truncation_policy="partial"

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {
            "totalPackets": self.total_packets,
            "packetDetails": [p.to_dict() for p in self.packet_details],
            "threats": [t.to_dict() for t in self.threats],
            "timestamp": self.timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        }
        if self.partial:
            out["partial"] = True
        return out

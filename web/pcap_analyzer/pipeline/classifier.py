"""
Threat classification over end-of-stream aggregation state.

Two independent rules, both able to fire for the same capture:
- a connection carrying more than DDOS_PACKET_THRESHOLD packets
- a source reaching more than SCAN_DESTINATION_THRESHOLD distinct destinations

Findings follow the insertion order of the aggregation maps. Callers should
compare findings as sets.
"""

from __future__ import annotations

from typing import List

from ..dto import AggregationState, ThreatFinding

DDOS_PACKET_THRESHOLD = 100
SCAN_DESTINATION_THRESHOLD = 20


def classify(state: AggregationState) -> List[ThreatFinding]:
    """Evaluate both rules; call once, after the whole capture was consumed."""
    findings: List[ThreatFinding] = []

    for key, count in state.connection_counts.items():
        if count > DDOS_PACKET_THRESHOLD:
            findings.append(
                ThreatFinding(
                    type="Potential DDoS",
                    description=f"High traffic detected on connection {key} with {count} packets.",
                    subject=str(key),
                    observed=count,
                )
            )

    for src, dsts in state.destinations_by_source.items():
        if len(dsts) > SCAN_DESTINATION_THRESHOLD:
            findings.append(
                ThreatFinding(
                    type="Potential Port Scan",
                    description=f"Source IP {src} connected to {len(dsts)} unique destinations.",
                    subject=src,
                    observed=len(dsts),
                )
            )

    return findings

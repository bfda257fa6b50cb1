"""
Traffic aggregation: per-connection packet counts and per-source fan-out.

One TrafficAggregator belongs to one analysis run. Nothing here is shared
between runs, so separate captures can be analyzed concurrently.
"""

from __future__ import annotations

from ..dto import AggregationState, ConnectionKey, DecodedPacket


class TrafficAggregator:
    """
    Maintains AggregationState for a single run.

    Usage:
        agg = TrafficAggregator()
        agg.observe(packet)          # once per DecodedPacket
        findings = classify(agg.state)
    """

    def __init__(self) -> None:
        self._state = AggregationState()
        self.observed = 0

    @property
    def state(self) -> AggregationState:
        return self._state

    def observe(self, pkt: DecodedPacket) -> None:
        """Update connection count and source fan-out with a single packet."""
        key = ConnectionKey(pkt.src_ip, pkt.dst_ip)
        counts = self._state.connection_counts
        counts[key] = counts.get(key, 0) + 1

        dsts = self._state.destinations_by_source.get(pkt.src_ip)
        if dsts is None:
            dsts = set()
            self._state.destinations_by_source[pkt.src_ip] = dsts
        dsts.add(pkt.dst_ip)

        self.observed += 1

"""
Analysis orchestration for one capture.

Pipeline: CaptureReader -> classify_frame -> TrafficAggregator, one frame
at a time, then a single classify() once the reader has stopped.

Failure policy
--------------
- Bad global header: AnalysisFailed, nothing processed.
- Container cut off mid-stream (TruncatedFrame):
    * truncation_policy="fail" (default): AnalysisFailed; the counts and
      details gathered so far stay on the CaptureAnalysis object but no
      result is returned.
    * truncation_policy="partial": the valid prefix is classified and
      returned as a result with partial=True.
- Undecodable compressed stream mid-way: always AnalysisFailed.
"""

from __future__ import annotations

import logging
import os
from collections import Counter
from datetime import datetime, timezone
from typing import IO, Callable, Dict, List, Optional

from ..config import AnalyzerConfig
from ..dto import AnalysisResult, Decoded, DecodedPacket, RawFrame
from ..errors import AnalysisFailed, MalformedContainer, TruncatedFrame
from ..intake.capture_reader import CaptureReader
from ..intake.source import open_capture
from ..pipeline.aggregator import TrafficAggregator
from ..pipeline.classifier import classify
from ..pipeline.decoder import classify_frame

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CaptureAnalysis:
    """
    Single-use analysis run.

    State (readable after run(), including after a failed run):
        total_packets: frames read, IPv4 or not.
        packet_details: DecodedPacket list in arrival order.
        skipped: Counter of Skipped reasons.
        aggregator: the run's TrafficAggregator.
    """

    def __init__(
        self,
        cfg: Optional[AnalyzerConfig] = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.cfg = cfg or AnalyzerConfig()
        self._clock = clock
        self.total_packets = 0
        self.packet_details: List[DecodedPacket] = []
        self.skipped: Counter = Counter()
        self.aggregator = TrafficAggregator()
        self._started = False

    # --- public ---

    def run(self, stream: IO[bytes]) -> AnalysisResult:
        """Consume ``stream`` to the end and return the AnalysisResult."""
        if self._started:
            raise RuntimeError("CaptureAnalysis instances are single-use")
        self._started = True

        try:
            reader = CaptureReader(stream)
        except MalformedContainer as e:
            logger.warning("Rejected capture: %s", e)
            raise AnalysisFailed(e) from e

        try:
            for frame in reader:
                self._consume(frame)
        except TruncatedFrame as e:
            if self.cfg.truncation_policy == "partial":
                logger.warning("Capture truncated after %d frames; returning partial result", self.total_packets)
                return self._finish(partial=True)
            logger.warning("Capture truncated after %d frames: %s", self.total_packets, e)
            raise AnalysisFailed(e, frames_processed=self.total_packets) from e
        except MalformedContainer as e:
            logger.warning("Capture unreadable after %d frames: %s", self.total_packets, e)
            raise AnalysisFailed(e, frames_processed=self.total_packets) from e

        return self._finish(partial=False)

    def metrics(self) -> Dict[str, int]:
        """Counters for logging and the CLI summary."""
        out = {
            "frames_read": self.total_packets,
            "ipv4_decoded": len(self.packet_details),
        }
        for reason, n in sorted(self.skipped.items()):
            out[f"skipped_{reason}"] = n
        return out

    # --- internals ---

    def _consume(self, frame: RawFrame) -> None:
        self.total_packets += 1
        outcome = classify_frame(frame)
        if isinstance(outcome, Decoded):
            self.packet_details.append(outcome.packet)
            self.aggregator.observe(outcome.packet)
        else:
            self.skipped[outcome.reason] += 1

    def _finish(self, *, partial: bool) -> AnalysisResult:
        threats = classify(self.aggregator.state)
        logger.info("Analysis complete: %s, findings=%d", self.metrics(), len(threats))
        return AnalysisResult(
            total_packets=self.total_packets,
            packet_details=list(self.packet_details),
            threats=threats,
            timestamp=self._clock(),
            partial=partial,
        )


def analyze(stream: IO[bytes], cfg: Optional[AnalyzerConfig] = None) -> AnalysisResult:
    """Analyze an open stream of uncompressed pcap bytes."""
    return CaptureAnalysis(cfg).run(stream)


def analyze_path(path: str | os.PathLike, cfg: Optional[AnalyzerConfig] = None) -> AnalysisResult:
    """Analyze a capture file (plain, gzip or zstd); the file is always closed."""
    with open_capture(path) as stream:
        return analyze(stream, cfg)

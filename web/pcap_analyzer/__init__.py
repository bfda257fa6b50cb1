"""
pcap_analyzer: capture ingestion and heuristic traffic analysis.

Public API (stable):
- AnalyzerConfig            (configuration)
- analyze, analyze_path     (analyze one capture)
- CaptureAnalysis           (single-use run object, state inspectable on failure)
- CaptureReader             (pcap container -> RawFrame)
- open_capture              (plain / gzip / zstd capture opener)
- decode, classify_frame    (RawFrame -> DecodedPacket / outcome)
- ReportStorePort, FeedbackSinkPort, BlobStorePort (collaborator interfaces)
- DTOs and errors

Everything else is internal.
"""

from __future__ import annotations

# Configuration
from .config import AnalyzerConfig

# Orchestration
from .orchestration.runner import CaptureAnalysis, analyze, analyze_path

# Intake
from .intake.capture_reader import CaptureReader, iter_frames
from .intake.source import open_capture, open_capture_stream

# Pipeline
from .pipeline.aggregator import TrafficAggregator
from .pipeline.classifier import DDOS_PACKET_THRESHOLD, SCAN_DESTINATION_THRESHOLD, classify
from .pipeline.decoder import classify_frame, decode

# Ports
from .ports import BlobStorePort, FeedbackSinkPort, ReportStorePort

# DTOs / errors
from .dto import (
    AggregationState,
    AnalysisResult,
    ConnectionKey,
    Decoded,
    DecodedPacket,
    RawFrame,
    Skipped,
    ThreatFinding,
)
from .errors import AnalysisFailed, CaptureError, CaptureTooLarge, MalformedContainer, TruncatedFrame

__all__ = [
    "AnalyzerConfig",
    "CaptureAnalysis",
    "analyze",
    "analyze_path",
    "CaptureReader",
    "iter_frames",
    "open_capture",
    "open_capture_stream",
    "TrafficAggregator",
    "DDOS_PACKET_THRESHOLD",
    "SCAN_DESTINATION_THRESHOLD",
    "classify",
    "classify_frame",
    "decode",
    "BlobStorePort",
    "FeedbackSinkPort",
    "ReportStorePort",
    "AggregationState",
    "AnalysisResult",
    "ConnectionKey",
    "Decoded",
    "DecodedPacket",
    "RawFrame",
    "Skipped",
    "ThreatFinding",
    "AnalysisFailed",
    "CaptureError",
    "CaptureTooLarge",
    "MalformedContainer",
    "TruncatedFrame",
]

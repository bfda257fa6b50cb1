"""
Error taxonomy for capture analysis.

Reader-level failures (``CaptureError`` subclasses) are fatal for the frame
sequence. Frames that merely fail field extraction are not errors at all:
they surface as ``dto.Skipped`` outcomes from the decoder.
"""

from __future__ import annotations


class CaptureError(Exception):
    """Base class for failures while reading the capture container."""


class MalformedContainer(CaptureError):
    """The global header is absent/invalid, or the stream cannot be decoded."""


class CaptureTooLarge(MalformedContainer):
    """A compressed capture expands past the configured size limit."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"decompressed capture exceeds {limit} bytes")


class TruncatedFrame(CaptureError):
    """A record header or body is shorter than declared; ends the sequence."""

    def __init__(self, frame_index: int, declared: int, available: int, what: str = "frame data") -> None:
        self.frame_index = frame_index
        self.declared = declared
        self.available = available
        super().__init__(
            f"frame #{frame_index}: {what} declares {declared} bytes but only {available} remain"
        )


class AnalysisFailed(Exception):
    """
    Wraps a fatal reader error surfaced to the caller of an analysis.

    ``frames_processed`` is the number of frames consumed before the failure;
    no partial result is attached.
    """

    def __init__(self, cause: CaptureError, frames_processed: int = 0) -> None:
        self.cause = cause
        self.frames_processed = frames_processed
        super().__init__(f"capture analysis failed after {frames_processed} frames: {cause}")

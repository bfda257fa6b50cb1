"""
Configuration schema for a capture analysis run.

Deliberately tiny: the flood/scan thresholds are fixed constants in
``pipeline.classifier`` and are not exposed here.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class AnalyzerConfig(BaseModel):
    """Validated, immutable options for one ``CaptureAnalysis``."""

    model_config = ConfigDict(frozen=True)

    truncation_policy: Literal["fail", "partial"] = Field(
        default="fail",
        description="What to do when the container is cut off mid-stream: "
        "'fail' raises AnalysisFailed and discards progress; 'partial' "
        "classifies the valid prefix and returns a result flagged partial.",
    )

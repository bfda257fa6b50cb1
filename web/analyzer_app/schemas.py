"""
Request body schemas for the JSON endpoints.

Validation failures are turned into 400 responses by the routes; the models
only describe what a well-formed body looks like.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ReportType = Literal["PDF", "JSON", "CSV"]


class FeedbackIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    message: str = Field(min_length=1)


class ReportIn(BaseModel):
    """A caller-wrapped analysis result: {reportName, reportType, data, userId}."""

    reportName: str = Field(min_length=1)
    reportType: ReportType
    data: Any
    userId: Optional[str] = None

    @field_validator("data")
    @classmethod
    def _data_present(cls, v: Any) -> Any:
        if v is None or v == "":
            raise ValueError("data is required")
        return v

    @field_validator("userId")
    @classmethod
    def _default_user(cls, v: Optional[str]) -> str:
        return v or "anonymous"

    def to_record(self) -> dict:
        return {
            "reportName": self.reportName,
            "reportType": self.reportType,
            "data": self.data,
            "userId": self.userId or "anonymous",
        }

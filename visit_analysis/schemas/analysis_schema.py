"""Analysis result, audit log, and response envelope models.

``parse_analysis_result`` is the one validator both scoring paths go
through before a result is persisted or returned.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from visit_analysis.utils import utc_now


class ScoringMethod(str, Enum):
    OPENAI = "openai"
    FALLBACK = "fallback"


class AnalysisResult(BaseModel):
    """Scored visit. Numeric fields carry hard range invariants."""
    model_config = ConfigDict(extra="ignore")

    purchase_probability: float = Field(..., ge=0.0, le=1.0)
    sentiment_score: float = Field(..., ge=-1.0, le=1.0)
    priority_ranking: int = Field(..., ge=1, le=10)
    confidence_score: float = Field(..., ge=0.0, le=1.0)
    recommended_actions: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    opportunities: list[str] = Field(default_factory=list)
    next_contact_timing: str = ""
    reasoning: str = ""
    cultural_considerations: Optional[str] = None
    generated_at: datetime = Field(default_factory=utc_now)

    @field_validator(
        "purchase_probability", "sentiment_score", "confidence_score", mode="before"
    )
    @classmethod
    def _reject_non_numeric(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"expected a number, got {value!r}")
        return value

    @field_validator("priority_ranking", mode="before")
    @classmethod
    def _require_integral_priority(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"expected an integer, got {value!r}")
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"priority_ranking must be a whole number, got {value}")
        return int(value)

    @field_validator("generated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


def parse_analysis_result(payload: dict[str, Any]) -> AnalysisResult:
    """
    Validate a raw analysis payload from either scoring path.

    Raises:
        pydantic.ValidationError: On missing numeric fields, wrong types,
            or out-of-range values. Nothing is clamped or coerced here.
    """
    return AnalysisResult.model_validate(payload)


class AnalysisLogEntry(BaseModel):
    """Append-only audit record, one per non-cached invocation."""

    visit_id: str
    analysis_result: AnalysisResult
    method: ScoringMethod
    processing_time_ms: float = Field(..., ge=0.0)
    success: bool = True
    confidence_score: Optional[float] = None
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)


class AnalysisOutcome(BaseModel):
    """What the orchestrator hands back to the transport layer."""

    result: AnalysisResult
    cached: bool
    method: Optional[ScoringMethod] = None


class AnalysisResponse(BaseModel):
    success: bool = True
    data: AnalysisResult
    cached: bool
    method: Optional[ScoringMethod] = None
    message: str


class ErrorResponse(BaseModel):
    error: str


class FailureResponse(BaseModel):
    success: bool = False
    error: str
    message: str


class PrioritizedVisit(BaseModel):
    """A visit whose stored analysis ranks it for follow-up."""

    visit_id: str
    analysis: AnalysisResult

"""Pydantic schemas for classification verdicts, incidents and reviews."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr

from incident_detector.models.incident import IncidentStatus
from incident_detector.models.incident_review import ReviewStatus

# -----------------------------------------------------------------------------
# Classification
# -----------------------------------------------------------------------------


class ClassificationVerdict(BaseModel):
    """
    Structured classifier output.

    Strict: a field of the wrong shape (a nested object where a
    string is expected, "true" for a bool) fails validation instead of being
    coerced, and the caller falls back to the safe default verdict.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    is_incident: StrictBool
    confidence: float = Field(ge=0, le=1, strict=True)
    severity_level: int = Field(ge=1, le=4, strict=True)
    title: StrictStr
    description: StrictStr
    keywords: frozenset[StrictStr]


SAFE_DEFAULT_VERDICT = ClassificationVerdict(
    is_incident=False,
    confidence=0.0,
    severity_level=1,
    title="Detection Error",
    description="Failed to analyze the messages",
    keywords=frozenset(),
)


# -----------------------------------------------------------------------------
# Incident
# -----------------------------------------------------------------------------


class IncidentUpdate(BaseModel):
    """Review-side edits to an incident. All fields optional."""

    status: Optional[IncidentStatus] = None
    title: Optional[str] = None
    description: Optional[str] = None
    severity_level: Optional[int] = Field(default=None, ge=1, le=4)
    impact_users: Optional[int] = Field(default=None, ge=0)
    resolved_at: Optional[datetime] = None


# -----------------------------------------------------------------------------
# Review
# -----------------------------------------------------------------------------


class ReviewCreate(BaseModel):
    review_status: ReviewStatus
    review_notes: Optional[str] = None
    reviewed_by: Optional[str] = None

"""
Incident model: one row per Slack thread judged to describe an outage.

(channel_id, slack_thread_ts) is unique; that constraint is what keeps
concurrent detectors from creating two incidents for the same thread.
"""

from __future__ import annotations

import uuid
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from incident_detector.db import Base
from incident_detector.models.mixins import JSONType, TimestampMixin, utcnow


class IncidentStatus(str, Enum):
    OPEN = "open"
    UNDER_REVIEW = "under_review"
    RESOLVED = "resolved"


class Incident(Base, TimestampMixin):
    """Detected incident; never deleted by the detection pipeline."""

    __tablename__ = "incidents"

    __table_args__ = (
        UniqueConstraint(
            "channel_id", "slack_thread_ts", name="uq_incidents_channel_thread"
        ),
        CheckConstraint(
            "severity_level BETWEEN 1 AND 4", name="ck_incidents_severity_level"
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    channel_id = Column(String(64), nullable=False)
    slack_thread_ts = Column(String(32), nullable=False)
    title = Column(String(512), nullable=False)
    description = Column(Text, nullable=True)
    severity_level = Column(Integer, nullable=False)
    status = Column(String(16), nullable=False, default=IncidentStatus.OPEN.value)
    confidence_score = Column(Float, nullable=False)
    detected_at = Column(DateTime, nullable=False, default=utcnow)
    resolved_at = Column(DateTime, nullable=True)
    impact_users = Column(Integer, nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    llm_analysis = Column(JSONType, nullable=True)  # raw verdict as returned

    messages = relationship(
        "IncidentMessage",
        back_populates="incident",
        cascade="all, delete-orphan",
        order_by="IncidentMessage.slack_ts",
    )
    reviews = relationship(
        "IncidentReview",
        back_populates="incident",
        cascade="all, delete-orphan",
        order_by="IncidentReview.reviewed_at.desc()",
    )

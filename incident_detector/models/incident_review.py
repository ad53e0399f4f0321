from __future__ import annotations

import uuid
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from incident_detector.db import Base
from incident_detector.models.mixins import utcnow


class ReviewStatus(str, Enum):
    CONFIRMED = "confirmed"
    FALSE_POSITIVE = "false_positive"
    NEEDS_INVESTIGATION = "needs_investigation"


class IncidentReview(Base):
    """Human review of a detected incident."""

    __tablename__ = "incident_reviews"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    incident_id = Column(
        Uuid,
        ForeignKey("incidents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reviewed_by = Column(String(256), nullable=True)
    review_status = Column(String(32), nullable=False)
    review_notes = Column(Text, nullable=True)
    reviewed_at = Column(DateTime, default=utcnow, nullable=False)

    incident = relationship("Incident", back_populates="reviews")

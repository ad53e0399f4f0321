"""IncidentMessage model: one row per Slack message attached to an incident."""

from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from incident_detector.db import Base
from incident_detector.models.mixins import utcnow


class IncidentMessage(Base):
    """slack_ts is unique store-wide: a Slack message is recorded at most once."""

    __tablename__ = "incident_messages"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    incident_id = Column(
        Uuid,
        ForeignKey("incidents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    slack_ts = Column(String(32), nullable=False, unique=True)
    user_id = Column(String(64), nullable=False)
    user_name = Column(String(256), nullable=True)  # resolved during backfill
    message = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, default=utcnow, nullable=False)

    incident = relationship("Incident", back_populates="messages")

    @property
    def author(self) -> str:
        return self.user_name or self.user_id

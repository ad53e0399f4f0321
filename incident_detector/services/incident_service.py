"""
Incident persistence: thread lookup, atomic creation with the backfilled
thread, and review-side updates.

The (channel_id, slack_thread_ts) unique constraint is the only concurrency
control. Any number of detectors may race to create the same incident; the
database lets exactly one insert through and the rest roll back as lost races.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from incident_detector.core.thread_identity import ThreadIdentity
from incident_detector.infra.logging_config import get_logger
from incident_detector.models.incident import Incident, IncidentStatus
from incident_detector.models.incident_message import IncidentMessage
from incident_detector.models.mixins import utcnow
from incident_detector.schemas.incident import ClassificationVerdict, IncidentUpdate
from incident_detector.schemas.slack import AggregatedThread
from incident_detector.utils.db.retry import retry_on_disconnect

logger = get_logger("incident_service")


def meets_auto_create_threshold(
    verdict: ClassificationVerdict, threshold: float
) -> bool:
    """True when the verdict is an incident with confidence at or above threshold."""
    return verdict.is_incident and verdict.confidence >= threshold


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def compute_duration_minutes(detected_at: datetime, resolved_at: datetime) -> int:
    """Whole minutes between detection and resolution, rounded down."""
    seconds = (_as_utc(resolved_at) - _as_utc(detected_at)).total_seconds()
    return int(seconds // 60)


def apply_resolution(incident: Incident, resolved_at: Optional[datetime] = None) -> None:
    """Mark incident resolved and derive duration_minutes. Caller commits."""
    incident.status = IncidentStatus.RESOLVED.value
    incident.resolved_at = resolved_at or incident.resolved_at or utcnow()
    incident.duration_minutes = compute_duration_minutes(
        incident.detected_at, incident.resolved_at
    )


class IncidentService:
    def __init__(self, db: Session) -> None:
        self.db = db

    @retry_on_disconnect()
    def find_by_thread(self, identity: ThreadIdentity) -> Optional[Incident]:
        return self._query_by_thread(identity)

    def _query_by_thread(self, identity: ThreadIdentity) -> Optional[Incident]:
        return (
            self.db.query(Incident)
            .filter(
                Incident.channel_id == identity.channel,
                Incident.slack_thread_ts == identity.thread_ts,
            )
            .first()
        )

    def get_incident(self, incident_id: UUID) -> Optional[Incident]:
        return self.db.query(Incident).filter(Incident.id == incident_id).first()

    @retry_on_disconnect()
    def create_with_messages(
        self,
        identity: ThreadIdentity,
        thread: AggregatedThread,
        verdict: ClassificationVerdict,
    ) -> Optional[Incident]:
        """
        Insert the incident and every thread message in one transaction.

        Returns None when another writer already created the incident for this
        thread. Other integrity failures roll back and propagate.
        """
        incident = Incident(
            channel_id=identity.channel,
            slack_thread_ts=identity.thread_ts,
            title=verdict.title,
            description=verdict.description,
            severity_level=verdict.severity_level,
            status=IncidentStatus.OPEN.value,
            confidence_score=verdict.confidence,
            detected_at=utcnow(),
            llm_analysis=verdict.model_dump(mode="json"),
        )
        self.db.add(incident)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            if self._query_by_thread(identity) is None:
                logger.error("Incident insert rejected for thread=%s", identity)
                raise
            logger.info("Lost race creating incident for thread=%s; already recorded", identity)
            return None

        for entry in thread.entries:
            self.db.add(
                IncidentMessage(
                    incident_id=incident.id,
                    slack_ts=entry.ts,
                    user_id=entry.user_id,
                    user_name=entry.display_name,
                    message=entry.text,
                )
            )
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.error(
                "Message insert failed while creating incident for thread=%s", identity
            )
            raise
        self.db.refresh(incident)
        logger.info(
            "Created incident id=%s thread=%s severity=%d confidence=%.2f messages=%d",
            incident.id,
            identity,
            incident.severity_level,
            incident.confidence_score,
            len(thread.entries),
        )
        return incident

    def update_incident(
        self, incident_id: UUID, data: IncidentUpdate
    ) -> Optional[Incident]:
        """Apply review-side edits. Resolving stamps resolved_at and derives duration."""
        incident = self.get_incident(incident_id)
        if incident is None:
            return None
        update_data = data.model_dump(exclude_unset=True)
        status = update_data.pop("status", None)
        resolved_at = update_data.pop("resolved_at", None)
        for key, value in update_data.items():
            setattr(incident, key, value)
        if resolved_at is not None:
            incident.resolved_at = resolved_at
        if status is not None:
            incident.status = IncidentStatus(status).value
        if incident.status == IncidentStatus.RESOLVED.value:
            apply_resolution(incident, resolved_at)
        self.db.commit()
        self.db.refresh(incident)
        return incident

"""IncidentMessage persistence. Insert-only; a Slack ts is recorded at most once."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from incident_detector.infra.logging_config import get_logger
from incident_detector.models.incident_message import IncidentMessage
from incident_detector.schemas.slack import SlackMessageEvent
from incident_detector.utils.db.retry import retry_on_disconnect

logger = get_logger("incident_message_service")


class IncidentMessageService:
    def __init__(self, db: Session) -> None:
        self.db = db

    @retry_on_disconnect()
    def has_message(self, slack_ts: str) -> bool:
        return self._message_exists(slack_ts)

    def _message_exists(self, slack_ts: str) -> bool:
        return (
            self.db.query(IncidentMessage.id)
            .filter(IncidentMessage.slack_ts == slack_ts)
            .first()
            is not None
        )

    @retry_on_disconnect()
    def append_message(
        self, incident_id: UUID, event: SlackMessageEvent
    ) -> Optional[IncidentMessage]:
        """
        Attach a later reply to an existing incident.

        Returns None when the message is already recorded, whether seen up front
        or caught by the unique constraint after a concurrent delivery.
        """
        if self._message_exists(event.ts):
            logger.info("Message ts=%s already recorded, skipping", event.ts)
            return None
        message = IncidentMessage(
            incident_id=incident_id,
            slack_ts=event.ts,
            user_id=event.user or "unknown",
            message=event.text,
        )
        self.db.add(message)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            if not self._message_exists(event.ts):
                logger.error("Message insert rejected for ts=%s", event.ts)
                raise
            logger.info("Message ts=%s recorded concurrently, skipping", event.ts)
            return None
        self.db.refresh(message)
        logger.info("Appended message ts=%s to incident id=%s", event.ts, incident_id)
        return message

    def get_messages(self, incident_id: UUID) -> List[IncidentMessage]:
        return (
            self.db.query(IncidentMessage)
            .filter(IncidentMessage.incident_id == incident_id)
            .order_by(IncidentMessage.slack_ts.asc())
            .all()
        )

"""Incident reviews and the status transitions they drive."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from incident_detector.models.incident import Incident, IncidentStatus
from incident_detector.models.incident_review import IncidentReview, ReviewStatus
from incident_detector.schemas.incident import ReviewCreate
from incident_detector.services.incident_service import apply_resolution

DEFAULT_REVIEWER = "Anonymous"


class IncidentReviewService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def create_review(
        self, incident_id: UUID, data: ReviewCreate
    ) -> Optional[IncidentReview]:
        """
        Record a review and move the incident along.

        false_positive resolves the incident, needs_investigation puts it under
        review, confirmed leaves the status alone. Returns None if the incident
        does not exist.
        """
        incident = self.db.query(Incident).filter(Incident.id == incident_id).first()
        if incident is None:
            return None
        review = IncidentReview(
            incident_id=incident_id,
            reviewed_by=data.reviewed_by or DEFAULT_REVIEWER,
            review_status=data.review_status.value,
            review_notes=data.review_notes,
        )
        self.db.add(review)
        if data.review_status == ReviewStatus.FALSE_POSITIVE:
            apply_resolution(incident)
        elif data.review_status == ReviewStatus.NEEDS_INVESTIGATION:
            incident.status = IncidentStatus.UNDER_REVIEW.value
        self.db.commit()
        self.db.refresh(review)
        return review

    def get_reviews(self, incident_id: UUID) -> List[IncidentReview]:
        return (
            self.db.query(IncidentReview)
            .filter(IncidentReview.incident_id == incident_id)
            .order_by(IncidentReview.reviewed_at.desc())
            .all()
        )

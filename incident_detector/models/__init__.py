from incident_detector.models.incident import Incident, IncidentStatus
from incident_detector.models.incident_message import IncidentMessage
from incident_detector.models.incident_review import IncidentReview, ReviewStatus

__all__ = [
    "Incident",
    "IncidentMessage",
    "IncidentReview",
    "IncidentStatus",
    "ReviewStatus",
]

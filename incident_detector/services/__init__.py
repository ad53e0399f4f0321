from incident_detector.services.classifier_gateway import ClassifierGateway
from incident_detector.services.escalation_notifier import EscalationNotifier
from incident_detector.services.incident_message_service import IncidentMessageService
from incident_detector.services.incident_review_service import IncidentReviewService
from incident_detector.services.incident_service import IncidentService
from incident_detector.services.message_aggregator import MessageAggregator

__all__ = [
    "ClassifierGateway",
    "EscalationNotifier",
    "IncidentMessageService",
    "IncidentReviewService",
    "IncidentService",
    "MessageAggregator",
]

# Import celery app first
from incident_detector.infra.celery_app import celery_app

# Initialize logging configuration for Celery workers
from incident_detector.infra.logging_config import LoggingConfig
from incident_detector.tasks.analyze_thread_task import analyze_thread_task

LoggingConfig()  # Initialize logging

__all__ = [
    "celery_app",
    "analyze_thread_task",
]

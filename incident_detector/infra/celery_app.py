from celery import Celery

from incident_detector.config import get_settings

settings = get_settings()

celery_app = Celery(
    "incident_detector",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["incident_detector.tasks.analyze_thread_task"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)

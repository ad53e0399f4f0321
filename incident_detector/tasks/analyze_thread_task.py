"""Celery task running a debounced thread analysis in a worker."""

from __future__ import annotations

import asyncio
from typing import Optional

from incident_detector.core.pipeline import build_pipeline_from_env
from incident_detector.core.thread_identity import ThreadIdentity
from incident_detector.infra.celery_app import celery_app
from incident_detector.infra.logging_config import get_logger

logger = get_logger("analyze_thread_task")


@celery_app.task(
    name="incident_detector.tasks.analyze_thread_task.analyze_thread_task"
)
def analyze_thread_task(channel: str, thread_ts: str) -> Optional[str]:
    """
    Analyze one thread after its debounce countdown.

    Returns the created incident id, or None when nothing was created (already
    recorded, empty thread, verdict below threshold, lost race).
    """
    if not channel or not thread_ts:
        logger.warning("Invalid thread identity for analysis: %s:%s", channel, thread_ts)
        return None

    identity = ThreadIdentity(channel=channel, thread_ts=thread_ts)
    pipeline = build_pipeline_from_env()
    incident = asyncio.run(pipeline.analyze_thread(identity))
    if incident is None:
        return None
    logger.info("Worker created incident id=%s for thread=%s", incident.id, identity)
    return str(incident.id)

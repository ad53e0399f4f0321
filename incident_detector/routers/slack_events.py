"""
Slack Events API intake.

The route verifies and parses the payload, hands message events to the
pipeline as a background task and acks within Slack's three-second window.
Redelivered events are absorbed by the pipeline, which records each message
at most once.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from pydantic import ValidationError
from slack_sdk.signature import SignatureVerifier

from incident_detector.config import get_settings
from incident_detector.core.pipeline import IncidentPipeline
from incident_detector.infra.logging_config import get_logger
from incident_detector.routers.utils.dependencies import get_pipeline
from incident_detector.schemas.slack import MESSAGE_EVENT_TYPE, SlackEventEnvelope

logger = get_logger("routers.slack_events")

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

URL_VERIFICATION = "url_verification"
EVENT_CALLBACK = "event_callback"


@router.post("/slack/events")
async def slack_events(
    request: Request,
    background_tasks: BackgroundTasks,
    pipeline: IncidentPipeline = Depends(get_pipeline),
) -> dict[str, Any]:
    """
    Receive Slack event callbacks. Answer url_verification challenges,
    queue message events for detection, ack everything else.
    """
    settings = get_settings()
    body = await request.body()
    if settings.slack_signing_secret:
        verifier = SignatureVerifier(settings.slack_signing_secret)
        if not verifier.is_valid_request(body, dict(request.headers)):
            raise HTTPException(status_code=403, detail="Invalid Slack signature")

    try:
        payload = json.loads(body)
    except ValueError as e:
        logger.warning("Slack webhook invalid JSON: %s", e)
        raise HTTPException(status_code=400, detail="Invalid JSON body") from e
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Body must be a JSON object")
    try:
        envelope = SlackEventEnvelope.model_validate(payload)
    except ValidationError as e:
        logger.warning("Slack webhook parse error: %s", e)
        raise HTTPException(status_code=400, detail="Invalid Slack event") from e

    if envelope.type == URL_VERIFICATION:
        logger.info("Received Slack URL verification challenge")
        return {"challenge": envelope.challenge}

    if envelope.type == EVENT_CALLBACK and envelope.event:
        event_type = envelope.event.get("type")
        if event_type == MESSAGE_EVENT_TYPE:
            retry_num = request.headers.get("x-slack-retry-num")
            logger.info(
                "Slack event received: event_id=%s ts=%s retry=%s",
                envelope.event_id,
                envelope.event.get("ts"),
                retry_num or 0,
            )
            background_tasks.add_task(pipeline.process_message_event, envelope.event)
        else:
            logger.debug("Ignoring Slack event type=%s", event_type)

    return {"ok": True}

"""
Incident detection pipeline.

process_message_event is the single entry point for inbound message events.
It never raises: the intake layer acks Slack immediately whatever happens here,
so every failure is logged and absorbed. Replies to a known incident are
appended; a new thread is debounced, then backfilled, classified and, if the
verdict clears the threshold, recorded exactly once.
"""

from __future__ import annotations

from typing import Any, Optional, Union

import redis
from pydantic import ValidationError

from incident_detector.adapters.base import BasePlatformAdapter
from incident_detector.adapters.slack import SlackAdapter
from incident_detector.config import Settings, get_settings
from incident_detector.core.debounce import CeleryDebounceScheduler, DebounceScheduler
from incident_detector.core.thread_identity import (
    ThreadIdentity,
    is_thread_root,
    resolve_thread_identity,
)
from incident_detector.db import DatabaseManager, db_manager as default_db_manager
from incident_detector.exceptions import InvalidEventError
from incident_detector.infra.logging_config import get_logger
from incident_detector.models.incident import Incident
from incident_detector.schemas.slack import SlackMessageEvent
from incident_detector.services.classifier_gateway import (
    ClassificationEngine,
    ClassifierGateway,
)
from incident_detector.services.escalation_notifier import EscalationNotifier
from incident_detector.services.incident_message_service import IncidentMessageService
from incident_detector.services.incident_service import (
    IncidentService,
    meets_auto_create_threshold,
)
from incident_detector.services.message_aggregator import MessageAggregator
from incident_detector.workers.classifier import build_classifier_from_env

logger = get_logger("pipeline")

Scheduler = Union[DebounceScheduler, CeleryDebounceScheduler]


class IncidentPipeline:
    def __init__(
        self,
        db_manager: DatabaseManager,
        platform: BasePlatformAdapter,
        classifier: ClassificationEngine,
        settings: Optional[Settings] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._db_manager = db_manager
        self._platform = platform
        self._aggregator = MessageAggregator(
            platform, page_size=self._settings.thread_fetch_limit
        )
        self._gateway = ClassifierGateway(classifier)
        self._notifier = EscalationNotifier(platform, self._settings)
        self.scheduler = scheduler or DebounceScheduler(
            delay_seconds=self._settings.debounce_delay_seconds
        )

    @property
    def platform(self) -> BasePlatformAdapter:
        return self._platform

    @property
    def settings(self) -> Settings:
        return self._settings

    async def process_message_event(
        self, raw_event: Union[SlackMessageEvent, dict[str, Any]]
    ) -> None:
        """Handle one inbound message event. Never raises."""
        try:
            event = (
                raw_event
                if isinstance(raw_event, SlackMessageEvent)
                else SlackMessageEvent.model_validate(raw_event)
            )
        except ValidationError as e:
            logger.warning("Dropping malformed message event: %s", e)
            return

        try:
            await self._process(event)
        except InvalidEventError as e:
            logger.warning("Dropping invalid message event: %s", e)
        except Exception as e:
            logger.exception(
                "Failed to process message event ts=%s channel=%s: %s",
                event.ts,
                event.channel,
                e,
            )

    async def _process(self, event: SlackMessageEvent) -> None:
        if not event.is_eligible:
            logger.debug(
                "Skipping event ts=%s type=%s subtype=%s",
                event.ts,
                event.type,
                event.subtype,
            )
            return

        identity = resolve_thread_identity(event)
        monitored = self._settings.monitored_channels
        if monitored and identity.channel not in monitored:
            logger.info("Channel %s is not monitored, skipping ts=%s", identity.channel, event.ts)
            return

        logger.info(
            "Processing message ts=%s thread=%s user=%s", event.ts, identity, event.user
        )
        with self._db_manager.db_session() as db:
            incident = IncidentService(db).find_by_thread(identity)
            if incident is not None:
                IncidentMessageService(db).append_message(incident.id, event)
                return

        if is_thread_root(event):
            self.scheduler.schedule(identity, self.analyze_thread)
        else:
            logger.info(
                "Reply ts=%s in thread=%s has no incident yet, skipping", event.ts, identity
            )

    async def analyze_thread(self, identity: ThreadIdentity) -> Optional[Incident]:
        """
        Debounce fire action: backfill, classify and record the thread.

        Safe to run any number of times per identity. It re-checks the store
        first and the writer tolerates losing a creation race.
        """
        with self._db_manager.db_session() as db:
            existing = IncidentService(db).find_by_thread(identity)
        if existing is not None:
            logger.info("Incident id=%s already exists for thread=%s", existing.id, identity)
            return None

        thread = await self._aggregator.aggregate(identity)
        if thread is None:
            return None

        verdict = await self._gateway.classify(thread)
        threshold = self._settings.min_confidence_for_auto_create
        if not meets_auto_create_threshold(verdict, threshold):
            logger.info(
                "Not creating incident for thread=%s: is_incident=%s confidence=%.4f threshold=%.4f",
                identity,
                verdict.is_incident,
                verdict.confidence,
                threshold,
            )
            return None

        with self._db_manager.db_session() as db:
            incident = IncidentService(db).create_with_messages(identity, thread, verdict)
        if incident is None:
            return None

        await self._notifier.notify(incident, identity.channel)
        return incident


def build_scheduler_from_env(settings: Settings) -> Scheduler:
    if settings.debounce_backend.lower() == "celery":
        return CeleryDebounceScheduler(
            redis.Redis.from_url(settings.redis_url),
            delay_seconds=settings.debounce_delay_seconds,
        )
    return DebounceScheduler(delay_seconds=settings.debounce_delay_seconds)


def build_pipeline_from_env() -> IncidentPipeline:
    settings = get_settings()
    if not settings.slack_bot_token:
        logger.warning("SLACK_BOT_TOKEN is not set; Slack API calls will fail.")
    return IncidentPipeline(
        db_manager=default_db_manager,
        platform=SlackAdapter(bot_token=settings.slack_bot_token or ""),
        classifier=build_classifier_from_env(),
        settings=settings,
        scheduler=build_scheduler_from_env(settings),
    )

"""In-memory platform and classification engine, plus a wired pipeline."""

import asyncio
import json
from typing import Optional

import pytest

from incident_detector.adapters.base import BasePlatformAdapter
from incident_detector.config import Settings
from incident_detector.core.debounce import DebounceScheduler
from incident_detector.core.pipeline import IncidentPipeline
from incident_detector.schemas.slack import ThreadMessage


class FakePlatform(BasePlatformAdapter):
    """Serves threads from a dict and records posted alerts."""

    def __init__(self) -> None:
        self.threads: dict[tuple[str, str], list[ThreadMessage]] = {}
        self.names: dict[str, str] = {}
        self.channel_names: dict[str, str] = {}
        self.posted: list[dict] = []
        self.fetch_calls = 0
        self.fetch_error: Optional[Exception] = None
        self.post_result = True

    def add_message(self, channel: str, thread_ts: str, user_id: str, text: str, ts: str):
        self.threads.setdefault((channel, thread_ts), []).append(
            ThreadMessage(user_id=user_id, text=text, ts=ts)
        )

    async def fetch_thread(self, channel, thread_ts, limit=100):
        self.fetch_calls += 1
        await asyncio.sleep(0)
        if self.fetch_error is not None:
            raise self.fetch_error
        return list(self.threads.get((channel, thread_ts), []))[:limit]

    async def resolve_display_name(self, user_id):
        return self.names.get(user_id)

    async def post_message(self, channel, text, blocks=None):
        self.posted.append({"channel": channel, "text": text, "blocks": blocks})
        return self.post_result

    async def get_channel_name(self, channel):
        return self.channel_names.get(channel)


class FakeClassifier:
    """Returns a canned response and counts calls."""

    def __init__(self, response: Optional[dict] = None) -> None:
        self.response = response
        self.raw: Optional[str] = None
        self.error: Optional[Exception] = None
        self.prompts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def classify(self, prompt: str) -> str:
        self.prompts.append(prompt)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        if self.raw is not None:
            return self.raw
        return json.dumps(self.response)


INCIDENT_RESPONSE = {
    "is_incident": True,
    "confidence": 0.95,
    "severity_level": 4,
    "title": "Login service outage",
    "description": "Nobody can log in; the auth service returns 503",
    "keywords": ["down", "503", "login"],
}

CHATTER_RESPONSE = {
    "is_incident": False,
    "confidence": 0.1,
    "severity_level": 1,
    "title": "Lunch plans",
    "description": "Team discussing lunch",
    "keywords": [],
}


@pytest.fixture
def fake_platform():
    return FakePlatform()


@pytest.fixture
def fake_classifier():
    return FakeClassifier(INCIDENT_RESPONSE)


@pytest.fixture
def test_settings():
    return Settings(
        debounce_delay_seconds=0,
        monitor_channels="",
        notification_enabled=True,
        notification_channel_id=None,
        high_severity_threshold=3,
        min_confidence_for_auto_create=0.5,
        db_retry_backoff_seconds=0,
    )


@pytest.fixture
def pipeline(db_manager, fake_platform, fake_classifier, test_settings):
    return IncidentPipeline(
        db_manager=db_manager,
        platform=fake_platform,
        classifier=fake_classifier,
        settings=test_settings,
        scheduler=DebounceScheduler(delay_seconds=0),
    )

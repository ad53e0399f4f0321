"""Tests for EscalationNotifier."""

from unittest.mock import AsyncMock

import pytest

from incident_detector.config import Settings
from incident_detector.models.incident import Incident
from incident_detector.services.escalation_notifier import EscalationNotifier
from tests.fixtures.platform_fixtures import FakePlatform


def _incident(severity=3, confidence=0.92):
    return Incident(
        channel_id="C0SOURCE",
        slack_thread_ts="1.0",
        title="Database unreachable",
        description="Primary DB refusing connections",
        severity_level=severity,
        confidence_score=confidence,
    )


def _settings(**overrides):
    data = {
        "notification_enabled": True,
        "high_severity_threshold": 3,
        "notification_channel_id": None,
    }
    data.update(overrides)
    return Settings(**data)


@pytest.mark.asyncio
async def test_notifies_at_threshold():
    platform = FakePlatform()
    notifier = EscalationNotifier(platform, _settings())
    assert await notifier.notify(_incident(severity=3), "C0SOURCE") is True
    assert len(platform.posted) == 1
    assert platform.posted[0]["channel"] == "C0SOURCE"
    assert "Database unreachable" in platform.posted[0]["text"]


@pytest.mark.asyncio
async def test_no_notification_below_threshold():
    platform = FakePlatform()
    notifier = EscalationNotifier(platform, _settings())
    assert await notifier.notify(_incident(severity=2), "C0SOURCE") is False
    assert platform.posted == []


@pytest.mark.asyncio
async def test_no_notification_when_disabled():
    platform = FakePlatform()
    notifier = EscalationNotifier(platform, _settings(notification_enabled=False))
    assert await notifier.notify(_incident(severity=4), "C0SOURCE") is False
    assert platform.posted == []


@pytest.mark.asyncio
async def test_configured_channel_overrides_source():
    platform = FakePlatform()
    notifier = EscalationNotifier(platform, _settings(notification_channel_id="C0ALERTS"))
    await notifier.notify(_incident(severity=4), "C0SOURCE")
    assert platform.posted[0]["channel"] == "C0ALERTS"


@pytest.mark.asyncio
async def test_post_failure_returns_false():
    platform = FakePlatform()
    platform.post_result = False
    notifier = EscalationNotifier(platform, _settings())
    assert await notifier.notify(_incident(severity=4), "C0SOURCE") is False


@pytest.mark.asyncio
async def test_post_exception_is_swallowed():
    platform = FakePlatform()
    platform.post_message = AsyncMock(side_effect=RuntimeError("socket closed"))
    notifier = EscalationNotifier(platform, _settings())
    assert await notifier.notify(_incident(severity=4), "C0SOURCE") is False


def test_blocks_contain_incident_details():
    blocks = EscalationNotifier.build_blocks(_incident(severity=4, confidence=0.92), "C0SOURCE")
    fields = [f["text"] for f in blocks[1]["fields"]]
    assert "*Title:*\nDatabase unreachable" in fields
    assert "*Severity:*\nLevel 4" in fields
    assert "*Confidence:*\n92% - explicit report" in fields
    assert blocks[2]["text"]["text"] == "Detected in <#C0SOURCE>"


def test_blocks_low_confidence_band():
    blocks = EscalationNotifier.build_blocks(_incident(confidence=0.55), "C1")
    fields = [f["text"] for f in blocks[1]["fields"]]
    assert "*Confidence:*\n55% - possible" in fields

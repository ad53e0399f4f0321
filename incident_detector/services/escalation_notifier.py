"""
Escalation of freshly created high-severity incidents to an alert channel.

The incident is already committed when this runs, so a failed alert is only
logged; it never undoes or fails the detection.
"""

from __future__ import annotations

from typing import Any, Optional

from incident_detector.adapters.base import BasePlatformAdapter
from incident_detector.config import Settings, get_settings
from incident_detector.infra.logging_config import get_logger
from incident_detector.models.incident import Incident
from incident_detector.services.classifier_gateway import confidence_description

logger = get_logger("escalation")


class EscalationNotifier:
    def __init__(
        self, platform: BasePlatformAdapter, settings: Optional[Settings] = None
    ) -> None:
        self._platform = platform
        self._settings = settings or get_settings()

    def should_notify(self, incident: Incident) -> bool:
        return (
            self._settings.notification_enabled
            and incident.severity_level >= self._settings.high_severity_threshold
        )

    def target_channel(self, source_channel: str) -> str:
        return self._settings.notification_channel_id or source_channel

    @staticmethod
    def build_blocks(incident: Incident, source_channel: str) -> list[dict[str, Any]]:
        """Block Kit layout of the alert."""
        confidence_pct = round(incident.confidence_score * 100)
        band = confidence_description(incident.confidence_score)
        return [
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": ":rotating_light: *High severity incident detected*",
                },
            },
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*Title:*\n{incident.title}"},
                    {
                        "type": "mrkdwn",
                        "text": f"*Severity:*\nLevel {incident.severity_level}",
                    },
                    {
                        "type": "mrkdwn",
                        "text": f"*Description:*\n{incident.description or '-'}",
                    },
                    {
                        "type": "mrkdwn",
                        "text": f"*Confidence:*\n{confidence_pct}% - {band}",
                    },
                ],
            },
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"Detected in <#{source_channel}>"},
            },
        ]

    async def notify(self, incident: Incident, source_channel: str) -> bool:
        """Send the alert if the incident qualifies. Returns True only on a delivered alert."""
        if not self.should_notify(incident):
            logger.info(
                "No escalation for incident id=%s severity=%d threshold=%d enabled=%s",
                incident.id,
                incident.severity_level,
                self._settings.high_severity_threshold,
                self._settings.notification_enabled,
            )
            return False

        channel = self.target_channel(source_channel)
        try:
            delivered = await self._platform.post_message(
                channel,
                f"High severity incident: {incident.title}",
                self.build_blocks(incident, source_channel),
            )
        except Exception as e:
            logger.exception(
                "Escalation for incident id=%s to channel=%s raised: %s",
                incident.id,
                channel,
                e,
            )
            return False

        if delivered:
            logger.info("Escalated incident id=%s to channel=%s", incident.id, channel)
        else:
            logger.warning(
                "Escalation for incident id=%s to channel=%s was not delivered",
                incident.id,
                channel,
            )
        return delivered

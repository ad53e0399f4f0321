from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class MonitoredChannel(BaseModel):
    id: str
    name: str
    is_active: bool


class MonitoringConfig(BaseModel):
    """Non-sensitive view of the detection settings, for operators."""

    is_limited: bool
    channel_count: int
    channels: list[MonitoredChannel]
    notification_channel: Optional[str] = None
    notification_enabled: bool
    severity_threshold: int
    confidence_threshold: float
    debounce_delay_seconds: float

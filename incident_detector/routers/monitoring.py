from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends

from incident_detector.core.pipeline import IncidentPipeline
from incident_detector.routers.utils.dependencies import get_pipeline
from incident_detector.schemas.monitoring import MonitoredChannel, MonitoringConfig

router = APIRouter(prefix="/monitoring", tags=["monitoring"])

UNKNOWN_CHANNEL_NAME = "Unknown Channel"


@router.get("", response_model=MonitoringConfig)
async def get_monitoring_config(
    pipeline: IncidentPipeline = Depends(get_pipeline),
) -> MonitoringConfig:
    """Return the channel allowlist (with names) and the detection thresholds."""
    settings = pipeline.settings
    channel_ids = sorted(settings.monitored_channels)
    names = await asyncio.gather(
        *(pipeline.platform.get_channel_name(cid) for cid in channel_ids)
    )
    channels = [
        MonitoredChannel(id=cid, name=name or UNKNOWN_CHANNEL_NAME, is_active=bool(name))
        for cid, name in zip(channel_ids, names)
    ]
    return MonitoringConfig(
        is_limited=bool(channel_ids),
        channel_count=len(channel_ids),
        channels=channels,
        notification_channel=settings.notification_channel_id,
        notification_enabled=settings.notification_enabled,
        severity_threshold=settings.high_severity_threshold,
        confidence_threshold=settings.min_confidence_for_auto_create,
        debounce_delay_seconds=settings.debounce_delay_seconds,
    )

"""Tests for the application lifespan."""

from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from incident_detector.main import create_app


def test_shutdown_flushes_pending_analyses():
    pipeline = MagicMock()
    pipeline.scheduler.shutdown = AsyncMock()
    pipeline.settings.shutdown_grace_seconds = 7.0
    app = create_app(testing=True, pipeline=pipeline)

    with TestClient(app):
        pipeline.scheduler.shutdown.assert_not_called()

    pipeline.scheduler.shutdown.assert_awaited_once_with(timeout=7.0)

"""Tests for the Celery analysis task."""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

from incident_detector.core.thread_identity import ThreadIdentity
from incident_detector.tasks.analyze_thread_task import analyze_thread_task


@patch("incident_detector.tasks.analyze_thread_task.build_pipeline_from_env")
def test_task_runs_analysis_and_returns_id(mock_build):
    incident = MagicMock(id=uuid4())
    mock_build.return_value.analyze_thread = AsyncMock(return_value=incident)

    result = analyze_thread_task.run("C1", "1.000001")

    assert result == str(incident.id)
    mock_build.return_value.analyze_thread.assert_awaited_once_with(
        ThreadIdentity(channel="C1", thread_ts="1.000001")
    )


@patch("incident_detector.tasks.analyze_thread_task.build_pipeline_from_env")
def test_task_returns_none_when_nothing_created(mock_build):
    mock_build.return_value.analyze_thread = AsyncMock(return_value=None)
    assert analyze_thread_task.run("C1", "1.000001") is None


@patch("incident_detector.tasks.analyze_thread_task.build_pipeline_from_env")
def test_task_rejects_empty_identity(mock_build):
    assert analyze_thread_task.run("", "1.0") is None
    mock_build.assert_not_called()

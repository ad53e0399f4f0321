"""Tests for LLMClassifier and its env builder."""

from unittest.mock import MagicMock, patch

import httpx
import pytest
from pydantic_ai.messages import ModelResponse, TextPart
from pydantic_ai.models.function import FunctionModel

from incident_detector.exceptions import ClassifierError
from incident_detector.workers.classifier import LLMClassifier, build_classifier_from_env

VERDICT_JSON = '{"is_incident": true, "confidence": 0.9}'


def _classifier(respond) -> LLMClassifier:
    return LLMClassifier("test-model", model=FunctionModel(respond))


@pytest.mark.asyncio
async def test_classify_returns_stripped_text():
    seen = []

    def respond(messages, info):
        seen.extend(
            part.content for part in messages[-1].parts if hasattr(part, "content")
        )
        return ModelResponse(parts=[TextPart(content=f"\n  {VERDICT_JSON}  \n")])

    result = await _classifier(respond).classify("thread goes here")

    assert result == VERDICT_JSON
    assert "thread goes here" in seen


@pytest.mark.asyncio
async def test_request_failure_raises_classifier_error():
    def respond(messages, info):
        raise httpx.ConnectError("connection refused")

    with pytest.raises(ClassifierError):
        await _classifier(respond).classify("thread goes here")


@pytest.mark.asyncio
async def test_empty_output_raises_classifier_error():
    def respond(messages, info):
        return ModelResponse(parts=[TextPart(content="   ")])

    with pytest.raises(ClassifierError):
        await _classifier(respond).classify("thread goes here")


@patch("incident_detector.workers.classifier.LLMClassifier")
@patch("incident_detector.workers.classifier.get_settings")
def test_build_classifier_from_env(mock_settings, mock_classifier):
    settings = MagicMock()
    settings.llm_model = "gpt-4o-mini"
    settings.litellm_api_key = "sk-test"
    settings.litellm_api_base = "http://litellm:4000"
    mock_settings.return_value = settings

    classifier = build_classifier_from_env()

    assert classifier is mock_classifier.return_value
    mock_classifier.assert_called_once_with(
        model_name="gpt-4o-mini",
        api_key="sk-test",
        api_base="http://litellm:4000",
    )

"""Tests for ClassifierGateway and verdict validation."""

import json
import math

import pytest
from pydantic import ValidationError

from incident_detector.exceptions import ClassifierError
from incident_detector.schemas.incident import SAFE_DEFAULT_VERDICT
from incident_detector.services.classifier_gateway import (
    ClassifierGateway,
    build_prompt,
    confidence_description,
    format_messages,
    parse_verdict,
)
from tests.fixtures.incident_fixtures import make_thread
from tests.fixtures.platform_fixtures import FakeClassifier, INCIDENT_RESPONSE


def _raw(**overrides) -> str:
    data = dict(INCIDENT_RESPONSE)
    data.update(overrides)
    return json.dumps(data)


def test_parse_valid_verdict():
    verdict = parse_verdict(_raw())
    assert verdict.is_incident is True
    assert verdict.confidence == 0.95
    assert verdict.severity_level == 4
    assert verdict.keywords == frozenset({"down", "503", "login"})


def test_parse_tolerates_surrounding_whitespace():
    assert parse_verdict("\n  " + _raw() + "\n").is_incident is True


def test_parse_ignores_unknown_fields():
    assert parse_verdict(_raw(extra_field="whatever")).title == INCIDENT_RESPONSE["title"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"confidence": 1.5},
        {"confidence": -0.1},
        {"severity_level": 0},
        {"severity_level": 5},
        {"severity_level": 2.5},
        {"is_incident": "true"},
        {"confidence": "0.9"},
        {"title": {"text": "nested"}},
        {"description": ["a", "b"]},
        {"keywords": "down"},
    ],
)
def test_parse_rejects_invalid_fields(overrides):
    with pytest.raises(ValidationError):
        parse_verdict(_raw(**overrides))


@pytest.mark.parametrize(
    "missing",
    ["is_incident", "confidence", "severity_level", "title", "description", "keywords"],
)
def test_parse_rejects_missing_field(missing):
    data = dict(INCIDENT_RESPONSE)
    del data[missing]
    with pytest.raises(ValidationError):
        parse_verdict(json.dumps(data))


def test_parse_rejects_non_json():
    with pytest.raises(ValidationError):
        parse_verdict("I think this is an incident.")


def test_parse_rejects_markdown_fenced_json():
    with pytest.raises(ValidationError):
        parse_verdict("```json\n" + _raw() + "\n```")


@pytest.mark.parametrize(
    "confidence,expected",
    [
        (1.0, "explicit report"),
        (0.9, "explicit report"),
        (math.nextafter(0.9, 0), "likely"),
        (0.7, "likely"),
        (0.5, "possible"),
        (math.nextafter(0.5, 0), "unlikely"),
        (0.0, "unlikely"),
    ],
)
def test_confidence_description_bands(confidence, expected):
    assert confidence_description(confidence) == expected


def test_format_messages_keeps_order_and_names():
    thread = make_thread(replies=1)
    lines = format_messages(thread).splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("[1712345678.000100] Alice: ")
    assert "User 2: same here (1)" in lines[1]


def test_build_prompt_embeds_conversation():
    prompt = build_prompt(make_thread(replies=0))
    assert "Alice: checkout is down" in prompt
    assert '"is_incident": boolean' in prompt


@pytest.mark.asyncio
async def test_classify_returns_validated_verdict():
    engine = FakeClassifier(INCIDENT_RESPONSE)
    verdict = await ClassifierGateway(engine).classify(make_thread())
    assert verdict.is_incident is True
    assert verdict.severity_level == 4
    assert engine.calls == 1
    assert "Alice" in engine.prompts[0]


@pytest.mark.asyncio
async def test_classify_engine_error_returns_safe_default():
    engine = FakeClassifier(INCIDENT_RESPONSE)
    engine.error = ClassifierError("timeout")
    verdict = await ClassifierGateway(engine).classify(make_thread())
    assert verdict == SAFE_DEFAULT_VERDICT
    assert engine.calls == 1


@pytest.mark.asyncio
async def test_classify_invalid_output_returns_safe_default():
    engine = FakeClassifier()
    engine.raw = _raw(confidence=3)
    verdict = await ClassifierGateway(engine).classify(make_thread())
    assert verdict is SAFE_DEFAULT_VERDICT


@pytest.mark.asyncio
async def test_classify_without_keywords_returns_safe_default():
    engine = FakeClassifier()
    data = dict(INCIDENT_RESPONSE)
    del data["keywords"]
    engine.raw = json.dumps(data)
    verdict = await ClassifierGateway(engine).classify(make_thread())
    assert verdict is SAFE_DEFAULT_VERDICT


@pytest.mark.asyncio
async def test_classify_nested_object_returns_safe_default():
    engine = FakeClassifier()
    engine.raw = _raw(title={"en": "Outage"})
    verdict = await ClassifierGateway(engine).classify(make_thread())
    assert verdict.is_incident is False
    assert verdict.confidence == 0.0
    assert verdict.title == "Detection Error"


def test_safe_default_values():
    assert SAFE_DEFAULT_VERDICT.is_incident is False
    assert SAFE_DEFAULT_VERDICT.confidence == 0.0
    assert SAFE_DEFAULT_VERDICT.severity_level == 1
    assert SAFE_DEFAULT_VERDICT.description == "Failed to analyze the messages"
    assert SAFE_DEFAULT_VERDICT.keywords == frozenset()

"""
Classifier gateway: prompt building, verdict validation and the safe fallback.

The engine is called exactly once per analysis. Whatever goes wrong (request
failure, non-JSON output, a field of the wrong type or out of range) the gateway
answers with SAFE_DEFAULT_VERDICT.
"""

from __future__ import annotations

from typing import Protocol

from pydantic import ValidationError

from incident_detector.constants.prompts import DetectionPrompt
from incident_detector.exceptions import ClassifierError
from incident_detector.infra.logging_config import get_logger
from incident_detector.schemas.incident import (
    SAFE_DEFAULT_VERDICT,
    ClassificationVerdict,
)
from incident_detector.schemas.slack import AggregatedThread

logger = get_logger("classifier_gateway")

CONFIDENCE_BANDS: tuple[tuple[float, str], ...] = (
    (0.9, "explicit report"),
    (0.7, "likely"),
    (0.5, "possible"),
)
LOWEST_CONFIDENCE_BAND = "unlikely"


class ClassificationEngine(Protocol):
    async def classify(self, prompt: str) -> str: ...


def confidence_description(confidence: float) -> str:
    """Human-readable band for a confidence score."""
    for floor, label in CONFIDENCE_BANDS:
        if confidence >= floor:
            return label
    return LOWEST_CONFIDENCE_BAND


def format_messages(thread: AggregatedThread) -> str:
    return "\n".join(
        f"[{entry.ts}] {entry.display_name}: {entry.text}" for entry in thread.entries
    )


def build_prompt(thread: AggregatedThread) -> str:
    return DetectionPrompt.TEMPLATE.format(messages=format_messages(thread))


def parse_verdict(raw: str) -> ClassificationVerdict:
    """Parse the engine's raw text as a verdict. Raises ValidationError on any deviation."""
    return ClassificationVerdict.model_validate_json(raw.strip())


class ClassifierGateway:
    def __init__(self, engine: ClassificationEngine) -> None:
        self._engine = engine

    async def classify(self, thread: AggregatedThread) -> ClassificationVerdict:
        prompt = build_prompt(thread)
        try:
            raw = await self._engine.classify(prompt)
        except ClassifierError as e:
            logger.warning(
                "Classifier request failed for thread=%s:%s, using safe default: %s",
                thread.channel,
                thread.thread_ts,
                e,
            )
            return SAFE_DEFAULT_VERDICT

        try:
            verdict = parse_verdict(raw)
        except ValidationError as e:
            logger.warning(
                "Classifier response failed validation for thread=%s:%s, using safe default: %s",
                thread.channel,
                thread.thread_ts,
                e,
            )
            return SAFE_DEFAULT_VERDICT

        logger.info(
            "Verdict for thread=%s:%s is_incident=%s confidence=%.2f severity=%d title=%r",
            thread.channel,
            thread.thread_ts,
            verdict.is_incident,
            verdict.confidence,
            verdict.severity_level,
            verdict.title,
        )
        return verdict

from __future__ import annotations

from typing import Optional

from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.litellm import LiteLLMProvider
from pydantic_ai.settings import ModelSettings

from incident_detector.config import get_settings
from incident_detector.constants.prompts import DetectionPrompt
from incident_detector.exceptions import ClassifierError
from incident_detector.infra.logging_config import get_logger

logger = get_logger("classifier")


class LLMClassifier:
    """Classification engine: sends a prompt, returns the model's raw text."""

    def __init__(
        self,
        model_name: str,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        system_prompt: Optional[str] = None,
        model: Optional[Model] = None,
    ) -> None:
        if model is None:
            provider = LiteLLMProvider(api_key=api_key, api_base=api_base)
            model = OpenAIChatModel(model_name, provider=provider)
        logger.info(f"Initializing LLM classifier with model {model_name}")
        self._agent = Agent(
            model,
            instructions=system_prompt or DetectionPrompt.SYSTEM,
            model_settings=ModelSettings(temperature=0.3, max_tokens=1000),
        )

    async def classify(self, prompt: str) -> str:
        try:
            result = await self._agent.run(prompt)
        except Exception as e:
            raise ClassifierError(f"classification request failed: {e}") from e
        output = str(result.output or "").strip()
        if not output:
            raise ClassifierError("classification response is empty")
        return output


def build_classifier_from_env() -> LLMClassifier:
    settings = get_settings()
    logger.info(
        "LLM classifier config: model=%s, api_key=%s, api_base=%s",
        settings.llm_model,
        "set" if settings.litellm_api_key else "not set",
        settings.litellm_api_base or "(default)",
    )
    if not settings.litellm_api_key:
        logger.warning(
            "LITELLM_API_KEY is not set; set it to a valid OpenAI or LiteLLM API key to avoid 401 errors."
        )
    return LLMClassifier(
        model_name=settings.llm_model,
        api_key=settings.litellm_api_key,
        api_base=settings.litellm_api_base,
    )

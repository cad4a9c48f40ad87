"""LLMGateway — uniform ``infer(prompt) -> text`` over any model provider."""

from __future__ import annotations

import logging
import math
from typing import Optional

from sheetwise.core.config import LLMConfig
from sheetwise.core.exceptions import LLMError
from sheetwise.core.protocols import IModelProvider
from sheetwise.models.llm import InferenceConfig, InvokeRequest, ModelInfo, ModelResponse

logger = logging.getLogger(__name__)


def estimate_token_count(text: str) -> int:
    """Rough approximation: one token per four characters."""
    return math.ceil(len(text) / 4)


class LLMGateway:
    """Applies default model settings and normalises provider failures to LLMError."""

    def __init__(self, provider: IModelProvider, config: LLMConfig | None = None) -> None:
        self._provider = provider
        self._config = config or LLMConfig()

    async def infer(self, prompt: str, config: Optional[InferenceConfig] = None) -> str:
        return (await self.invoke(prompt, config)).content

    async def invoke(self, prompt: str, config: Optional[InferenceConfig] = None) -> ModelResponse:
        """Like ``infer`` but keeps the model id and token usage."""
        config = config or InferenceConfig()
        request = InvokeRequest(
            model=config.model or self._config.default_model,
            prompt=prompt,
            temperature=self._config.temperature if config.temperature is None else config.temperature,
            max_tokens=config.max_tokens or self._config.max_tokens,
        )
        logger.info("Invoking model %s, prompt length %d characters", request.model, len(prompt))
        try:
            response = await self._provider.invoke(request)
        except LLMError as exc:
            logger.error("Inference failed: %s", exc)
            raise LLMError(f"LLM inference failed: {exc}") from exc
        except Exception as exc:
            logger.exception("Inference failed")
            raise LLMError(f"LLM inference failed: {exc}") from exc

        usage = response.usage
        logger.info(
            "Response received, length %d characters (tokens in=%s out=%s)",
            len(response.content),
            usage.input_tokens if usage else "?",
            usage.output_tokens if usage else "?",
        )
        return response

    def estimate_token_count(self, text: str) -> int:
        return estimate_token_count(text)

    def available_models(self) -> list[ModelInfo]:
        return self._provider.available_models()

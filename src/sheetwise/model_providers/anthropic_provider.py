"""Direct Anthropic API provider."""

from __future__ import annotations

from typing import Any

import anthropic
from anthropic import AsyncAnthropic

from sheetwise.core.exceptions import LLMError
from sheetwise.models.llm import InvokeRequest, ModelInfo, ModelResponse, TokenUsage


class AnthropicModelProvider:
    """IModelProvider backed by the Anthropic Messages API.

    Bedrock-style model ids are not accepted by the API, so any request whose
    model is not in this provider's list is sent with ``default_model``.
    """

    def __init__(self, api_key: str | None = None,
                 default_model: str = "claude-sonnet-4-5-20250929",
                 client: Any = None) -> None:
        self._client = client or AsyncAnthropic(api_key=api_key)
        self._default_model = default_model

    def available_models(self) -> list[ModelInfo]:
        return [ModelInfo(id=self._default_model, name=self._default_model, provider="Anthropic")]

    async def invoke(self, request: InvokeRequest) -> ModelResponse:
        model = request.model if request.model.startswith("claude-") else self._default_model
        try:
            message = await self._client.messages.create(
                model=model,
                max_tokens=request.max_tokens,
                temperature=request.temperature,
                messages=[{"role": "user", "content": request.prompt}],
            )
        except anthropic.APIError as exc:
            raise LLMError(f"Anthropic API call failed: {exc}") from exc

        text = "".join(block.text for block in message.content if block.type == "text")
        return ModelResponse(
            content=text,
            model=model,
            usage=TokenUsage(
                input_tokens=message.usage.input_tokens,
                output_tokens=message.usage.output_tokens,
            ),
        )

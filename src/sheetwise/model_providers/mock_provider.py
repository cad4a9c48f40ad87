"""Mock model provider for local development and testing.

Returns canned responses. No real LLM calls.
"""

from __future__ import annotations

from collections import deque

from sheetwise.models.llm import InvokeRequest, ModelInfo, ModelResponse, TokenUsage


class MockModelProvider:
    """IModelProvider implementation that returns deterministic mock responses."""

    def __init__(self, default_response: str = "{}") -> None:
        self._default_response = default_response
        self._canned_responses: dict[str, str] = {}
        self._queued: deque[str] = deque()
        self.requests: list[InvokeRequest] = []

    def set_response(self, prompt_contains: str, response: str) -> None:
        """Register a canned response for prompts containing a keyword."""
        self._canned_responses[prompt_contains] = response

    def queue_response(self, response: str) -> None:
        """Queue a one-shot response; queued responses win over keyword matches."""
        self._queued.append(response)

    async def invoke(self, request: InvokeRequest) -> ModelResponse:
        self.requests.append(request)
        content = self._match(request.prompt)
        return ModelResponse(
            content=content,
            model=request.model,
            usage=TokenUsage(input_tokens=len(request.prompt) // 4, output_tokens=len(content) // 4),
        )

    def available_models(self) -> list[ModelInfo]:
        return [ModelInfo(id="mock", name="Mock", provider="Mock")]

    def _match(self, prompt: str) -> str:
        if self._queued:
            return self._queued.popleft()
        for keyword, response in self._canned_responses.items():
            if keyword in prompt:
                return response
        return self._default_response

"""Tests for the LLM gateway."""

from __future__ import annotations

import pytest

from sheetwise.agents.extraction.llm import LLMGateway, estimate_token_count
from sheetwise.core.config import LLMConfig
from sheetwise.core.exceptions import LLMError
from sheetwise.models.llm import InferenceConfig
from tests.fakes import MockModelProvider


class ExplodingProvider:
    async def invoke(self, request):
        raise RuntimeError("connection reset")

    def available_models(self):
        return []


@pytest.mark.parametrize("text,tokens", [("", 0), ("abc", 1), ("abcd", 1), ("abcde", 2), ("x" * 16000, 4000)])
def test_estimate_token_count(text, tokens):
    assert estimate_token_count(text) == tokens


async def test_applies_configured_defaults():
    provider = MockModelProvider(default_response="hello")
    gateway = LLMGateway(provider, LLMConfig(default_model="m-1", temperature=0.1, max_tokens=100))
    assert await gateway.infer("prompt") == "hello"
    request = provider.requests[0]
    assert (request.model, request.temperature, request.max_tokens) == ("m-1", 0.1, 100)


async def test_per_call_config_wins():
    provider = MockModelProvider()
    gateway = LLMGateway(provider, LLMConfig(default_model="m-1"))
    await gateway.infer("prompt", InferenceConfig(model="m-2", temperature=0.0, max_tokens=10))
    request = provider.requests[0]
    assert (request.model, request.temperature, request.max_tokens) == ("m-2", 0.0, 10)


async def test_provider_failure_becomes_llm_error():
    gateway = LLMGateway(ExplodingProvider())
    with pytest.raises(LLMError, match="LLM inference failed: connection reset"):
        await gateway.infer("prompt")


def test_available_models():
    assert [m.id for m in LLMGateway(MockModelProvider()).available_models()] == ["mock"]


async def test_invoke_keeps_model_and_usage():
    provider = MockModelProvider(default_response="x" * 8)
    gateway = LLMGateway(provider, LLMConfig(default_model="m-1"))
    response = await gateway.invoke("p" * 40)
    assert response.content == "x" * 8
    assert response.model == "m-1"
    assert (response.usage.input_tokens, response.usage.output_tokens) == (10, 2)


async def test_invoke_failure_becomes_llm_error():
    with pytest.raises(LLMError, match="connection reset"):
        await LLMGateway(ExplodingProvider()).invoke("prompt")

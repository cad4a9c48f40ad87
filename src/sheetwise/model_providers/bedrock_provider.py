"""Bedrock model provider.

One provider covers every model in the registry below; request and response
bodies differ between the Anthropic and Amazon model families.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from sheetwise.core.exceptions import LLMError
from sheetwise.models.llm import InvokeRequest, ModelInfo, ModelResponse, TokenUsage

logger = logging.getLogger(__name__)

ANTHROPIC = "Anthropic"
AMAZON = "Amazon"

# Add models here to make them invokable.
BEDROCK_MODELS: list[ModelInfo] = [
    ModelInfo(id="us.anthropic.claude-sonnet-4-5-20250929-v1:0", name="Claude Sonnet 4.5", provider=ANTHROPIC),
    ModelInfo(id="anthropic.claude-3-5-sonnet-20241022-v2:0", name="Claude 3.5 Sonnet", provider=ANTHROPIC),
    ModelInfo(id="anthropic.claude-3-5-haiku-20241022-v1:0", name="Claude 3.5 Haiku", provider=ANTHROPIC),
    ModelInfo(id="anthropic.claude-3-opus-20240229-v1:0", name="Claude 3 Opus", provider=ANTHROPIC),
    ModelInfo(id="us.amazon.nova-micro-v1:0", name="Nova Micro", provider=AMAZON),
    ModelInfo(id="us.amazon.nova-lite-v1:0", name="Nova Lite", provider=AMAZON),
    ModelInfo(id="us.amazon.nova-pro-v1:0", name="Nova Pro", provider=AMAZON),
]


def build_request_body(provider: str, request: InvokeRequest) -> dict[str, Any]:
    if provider == ANTHROPIC:
        return {
            "anthropic_version": "bedrock-2023-05-31",
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": [{"role": "user", "content": request.prompt}],
        }
    if provider == AMAZON:
        return {
            "messages": [{"role": "user", "content": [{"text": request.prompt}]}],
            "inferenceConfig": {
                "max_new_tokens": request.max_tokens,
                "temperature": request.temperature,
            },
        }
    raise LLMError(f"Unsupported provider: {provider}")


def parse_response_body(provider: str, body: dict[str, Any], model: str) -> ModelResponse:
    try:
        if provider == ANTHROPIC:
            usage = body.get("usage", {})
            return ModelResponse(
                content=body["content"][0]["text"],
                model=model,
                usage=TokenUsage(
                    input_tokens=usage.get("input_tokens", 0),
                    output_tokens=usage.get("output_tokens", 0),
                ),
            )
        if provider == AMAZON:
            usage = body.get("usage", {})
            return ModelResponse(
                content=body["output"]["message"]["content"][0]["text"],
                model=model,
                usage=TokenUsage(
                    input_tokens=usage.get("inputTokens", 0),
                    output_tokens=usage.get("outputTokens", 0),
                ),
            )
    except (KeyError, IndexError, TypeError) as exc:
        raise LLMError(f"Unexpected Bedrock response shape from {model}: {exc}") from exc
    raise LLMError(f"Unsupported provider: {provider}")


class BedrockModelProvider:
    """Production IModelProvider backed by bedrock-runtime InvokeModel."""

    def __init__(self, region: str = "us-east-1", profile: str | None = None,
                 endpoint_url: str | None = None, client: Any = None) -> None:
        self._region = region
        if client is None:
            session = boto3.Session(profile_name=profile, region_name=region)
            kwargs: dict = {}
            if endpoint_url:
                kwargs["endpoint_url"] = endpoint_url
            client = session.client("bedrock-runtime", **kwargs)
        self._client = client
        self._models = {m.id: m for m in BEDROCK_MODELS}

    def available_models(self) -> list[ModelInfo]:
        return list(self._models.values())

    async def invoke(self, request: InvokeRequest) -> ModelResponse:
        # boto3 is blocking; keep the event loop free for other operations
        return await asyncio.to_thread(self.invoke_sync, request)

    def invoke_sync(self, request: InvokeRequest) -> ModelResponse:
        info = self._models.get(request.model)
        if info is None:
            raise LLMError(f"Model {request.model} not found")

        body = build_request_body(info.provider, request)
        logger.debug("Invoking %s (%s)", info.name, info.provider)
        try:
            resp = self._client.invoke_model(
                modelId=request.model,
                contentType="application/json",
                accept="application/json",
                body=json.dumps(body),
            )
            payload = json.loads(resp["body"].read())
        except ClientError as exc:
            meta = exc.response.get("ResponseMetadata", {})
            logger.error(
                "Bedrock error invoking %s: %s (status=%s, request_id=%s)",
                info.name, exc, meta.get("HTTPStatusCode"), meta.get("RequestId"),
            )
            raise LLMError(f"Failed to invoke model: {exc}") from exc
        except (BotoCoreError, ValueError) as exc:
            raise LLMError(f"Failed to invoke model: {exc}") from exc

        return parse_response_body(info.provider, payload, request.model)

"""Select a model provider from settings."""

from __future__ import annotations

from sheetwise.core.config import AppSettings
from sheetwise.core.protocols import IModelProvider


def create_model_provider(settings: AppSettings) -> IModelProvider:
    provider = settings.llm.provider
    if provider == "bedrock":
        from sheetwise.model_providers.bedrock_provider import BedrockModelProvider

        return BedrockModelProvider(
            region=settings.aws.region,
            profile=settings.aws.profile,
            endpoint_url=settings.aws.endpoint_url,
        )
    if provider == "anthropic":
        from sheetwise.model_providers.anthropic_provider import AnthropicModelProvider

        return AnthropicModelProvider(
            api_key=settings.llm.anthropic_api_key,
            default_model=settings.llm.anthropic_model,
        )

    from sheetwise.model_providers.mock_provider import MockModelProvider

    return MockModelProvider()

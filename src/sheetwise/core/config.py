"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class LLMConfig(BaseSettings):
    """LLM provider configuration."""

    model_config = {"env_prefix": "SHEETWISE_LLM_"}

    provider: Literal["mock", "bedrock", "anthropic"] = "mock"
    default_model: str = "us.anthropic.claude-sonnet-4-5-20250929-v1:0"
    temperature: float = 0.1  # low for consistent extraction
    max_tokens: int = 4096
    anthropic_api_key: str | None = None
    anthropic_model: str = "claude-sonnet-4-5-20250929"


class AWSConfig(BaseSettings):
    """AWS credentials/region for Bedrock."""

    model_config = {"env_prefix": "SHEETWISE_AWS_"}

    region: str = "us-east-1"
    profile: str | None = None
    endpoint_url: str | None = None  # LocalStack override


class OperationsConfig(BaseSettings):
    """Operation retention windows, in seconds."""

    model_config = {"env_prefix": "SHEETWISE_OPERATIONS_"}

    pending_ttl: int = 30 * 60  # stale if never started
    processing_ttl: int = 60 * 60  # stuck operations
    completed_ttl: int = 24 * 60 * 60
    failed_ttl: int = 24 * 60 * 60
    cancelled_ttl: int = 60 * 60
    cleanup_interval_seconds: float = 5 * 60


class ExtractionConfig(BaseSettings):
    """Two-pass extraction tuning."""

    model_config = {"env_prefix": "SHEETWISE_EXTRACTION_"}

    sample_threshold: int = 50
    max_sample_size: int = 30
    discovery_preview_rows: int = 10
    token_threshold: int = 4000
    low_confidence_threshold: int = 5


class UploadConfig(BaseSettings):
    """Inbound file limits."""

    model_config = {"env_prefix": "SHEETWISE_UPLOAD_"}

    max_file_size_bytes: int = 50 * 1024 * 1024


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "SHEETWISE_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"
    log_json: bool = False

    llm: LLMConfig = LLMConfig()
    aws: AWSConfig = AWSConfig()
    operations: OperationsConfig = OperationsConfig()
    extraction: ExtractionConfig = ExtractionConfig()
    upload: UploadConfig = UploadConfig()

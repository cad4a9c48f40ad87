"""Provider-neutral LLM request/response models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class InferenceConfig(BaseModel):
    """Per-call overrides; unset values fall back to ``LLMConfig``."""

    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


class InvokeRequest(BaseModel):
    model: str
    prompt: str
    temperature: float = 0.7
    max_tokens: int = 4096


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class ModelResponse(BaseModel):
    content: str
    model: str
    usage: Optional[TokenUsage] = None


class ModelInfo(BaseModel):
    id: str
    name: str
    provider: str  # Anthropic or Amazon

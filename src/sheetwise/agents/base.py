"""Base agent with common dependency wiring and lifecycle patterns."""

from __future__ import annotations

from typing import Any

from sheetwise.agents.extraction.llm import LLMGateway
from sheetwise.core.config import AppSettings


class BaseAgent:
    """Common base for LLM-backed agents.

    Settings and the LLM gateway are injected at construction time.
    """

    def __init__(self, *, settings: AppSettings, llm: LLMGateway) -> None:
        self._settings = settings
        self._llm = llm

    async def health_check(self) -> dict[str, Any]:
        """Return agent health status."""
        return {
            "agent": self.__class__.__name__,
            "status": "healthy",
            "environment": self._settings.environment,
        }

"""Protocol interfaces for all Sheetwise abstractions.

All inter-layer communication uses these Protocols — structural typing,
no inheritance required, easy to test with isinstance().
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from sheetwise.models.llm import InvokeRequest, ModelInfo, ModelResponse
from sheetwise.models.normalized_data import NormalizedData
from sheetwise.models.operation import Operation, OperationProgress, OperationStatus

# Receives a full progress snapshot; the manager merges it onto the stored one.
ProgressCallback = Callable[[OperationProgress], None]


# ---------------------------------------------------------------------------
# Model Provider
# ---------------------------------------------------------------------------

@runtime_checkable
class IModelProvider(Protocol):
    """Abstraction over LLM providers (mock, Bedrock, Anthropic API)."""

    async def invoke(self, request: InvokeRequest) -> ModelResponse: ...

    def available_models(self) -> list[ModelInfo]: ...


# ---------------------------------------------------------------------------
# Persistence: Operation Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IOperationStore(Protocol):
    """Keyed operation table with status-dependent TTL eviction."""

    def create(self, operation: Operation) -> None: ...

    def get(self, operation_id: str) -> Optional[Operation]: ...

    def update(self, operation_id: str, **fields: Any) -> Optional[Operation]: ...

    def delete(self, operation_id: str) -> bool: ...

    def has(self, operation_id: str) -> bool: ...

    def get_all(self) -> list[Operation]: ...

    def get_count_by_status(self) -> dict[OperationStatus, int]: ...

    def cleanup_expired(self, now: Optional[datetime] = None) -> int: ...


# ---------------------------------------------------------------------------
# File Parsers
# ---------------------------------------------------------------------------

@runtime_checkable
class IParser(Protocol):
    """Turns raw file bytes into NormalizedData."""

    async def parse(
        self, file_content: bytes, filename: str, sheet_name: Optional[str] = None
    ) -> NormalizedData: ...

    def supported_extensions(self) -> list[str]: ...

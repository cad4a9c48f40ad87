"""Operation, progress and status read models."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Optional

from pydantic import Field, PrivateAttr

from sheetwise.models.base import CamelModel
from sheetwise.models.extraction import ExtractionResult
from sheetwise.models.normalized_data import ExtractionContext


class OperationStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class OperationPhase(StrEnum):
    PARSING = "parsing"
    DISCOVERY = "discovery"
    EXTRACTION = "extraction"
    MAPPING = "mapping"


CANCELLABLE_STATUSES = frozenset({OperationStatus.PENDING, OperationStatus.PROCESSING})
TERMINAL_STATUSES = frozenset(
    {OperationStatus.COMPLETED, OperationStatus.FAILED, OperationStatus.CANCELLED}
)


class CancellationToken:
    """Flag shared by the cancel request and the worker's checkpoints."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled


class OperationProgress(CamelModel):
    phase: OperationPhase = OperationPhase.PARSING
    current_step: str = ""
    rows_processed: int = 0
    total_rows: int = 0
    percent_complete: int = 0


class OperationError(CamelModel):
    code: str
    message: str
    phase: Optional[OperationPhase] = None
    details: Optional[dict[str, Any]] = None


class Operation(CamelModel):
    """One asynchronous extraction job, owned by the operation store."""

    operation_id: str
    status: OperationStatus = OperationStatus.PENDING
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    progress: Optional[OperationProgress] = None
    result: Optional[ExtractionResult] = None
    error: Optional[OperationError] = None

    # Request payload consumed by the worker
    file_content: bytes = Field(default=b"", exclude=True, repr=False)
    filename: str
    sheet_name: Optional[str] = None
    context: ExtractionContext

    _cancellation: CancellationToken = PrivateAttr(default_factory=CancellationToken)

    @property
    def cancellation(self) -> CancellationToken:
        return self._cancellation


class OperationStatusView(CamelModel):
    """What a polling client sees for an operation."""

    operation_id: str
    status: OperationStatus
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    progress: Optional[OperationProgress] = None
    result: Optional[ExtractionResult] = None
    error: Optional[OperationError] = None

    @classmethod
    def from_operation(cls, operation: Operation) -> "OperationStatusView":
        return cls(
            operation_id=operation.operation_id,
            status=operation.status,
            created_at=operation.created_at,
            started_at=operation.started_at,
            completed_at=operation.completed_at,
            failed_at=operation.failed_at,
            cancelled_at=operation.cancelled_at,
            progress=operation.progress,
            result=operation.result if operation.status == OperationStatus.COMPLETED else None,
            error=operation.error if operation.status == OperationStatus.FAILED else None,
        )

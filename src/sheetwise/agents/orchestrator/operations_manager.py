"""OperationsManager — the sanctioned way to create and mutate operations.

State machine::

    pending -> processing -> completed | failed
    pending | processing -> cancelled

Only ``cancel`` validates its source state. The other transitions are driven
by the extraction worker, the sole writer of processing/completed/failed.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sheetwise.core.exceptions import OperationNotCancellableError, OperationNotFoundError
from sheetwise.core.protocols import IOperationStore
from sheetwise.models.extraction import ExtractionResult
from sheetwise.models.normalized_data import ExtractionContext
from sheetwise.models.operation import (
    CANCELLABLE_STATUSES,
    CancellationToken,
    Operation,
    OperationError,
    OperationPhase,
    OperationProgress,
    OperationStatus,
)

logger = logging.getLogger(__name__)

_STATUS_TIMESTAMPS = {
    OperationStatus.PROCESSING: "started_at",
    OperationStatus.COMPLETED: "completed_at",
    OperationStatus.FAILED: "failed_at",
    OperationStatus.CANCELLED: "cancelled_at",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_operation_id() -> str:
    return f"op_{uuid.uuid4().hex[:12]}"


def merge_progress(current: Optional[OperationProgress], changes: dict[str, Any]) -> OperationProgress:
    """Overlay ``changes`` on ``current`` (or a zeroed default); unspecified fields are kept."""
    base = current if current is not None else OperationProgress()
    merged = base.model_dump()
    merged.update(changes)
    return OperationProgress.model_validate(merged)


class OperationsManager:
    """Lifecycle API over an IOperationStore."""

    def __init__(self, store: IOperationStore) -> None:
        self._store = store

    def create(
        self,
        *,
        file_content: bytes,
        filename: str,
        context: ExtractionContext,
        sheet_name: Optional[str] = None,
    ) -> Operation:
        operation = Operation(
            operation_id=new_operation_id(),
            status=OperationStatus.PENDING,
            created_at=_utcnow(),
            file_content=file_content,
            filename=filename,
            sheet_name=sheet_name,
            context=context,
        )
        self._store.create(operation)
        logger.info("Created operation %s for %s", operation.operation_id, filename)
        return operation

    def get(self, operation_id: str) -> Operation:
        operation = self._store.get(operation_id)
        if operation is None:
            raise OperationNotFoundError(operation_id)
        return operation

    def exists(self, operation_id: str) -> bool:
        return self._store.has(operation_id)

    def cancellation_token(self, operation_id: str) -> CancellationToken:
        return self.get(operation_id).cancellation

    def update_status(self, operation_id: str, status: OperationStatus) -> Operation:
        operation = self.get(operation_id)
        updates: dict[str, Any] = {"status": status}
        timestamp_field = _STATUS_TIMESTAMPS.get(status)
        # Each transition timestamp is written once.
        if timestamp_field is not None and getattr(operation, timestamp_field) is None:
            updates[timestamp_field] = _utcnow()
        updated = self._store.update(operation_id, **updates)
        logger.info("Updated operation %s status to %s", operation_id, status)
        return updated or operation

    def update_progress(self, operation_id: str, **changes: Any) -> Operation:
        operation = self.get(operation_id)
        progress = merge_progress(operation.progress, changes)
        return self._store.update(operation_id, progress=progress) or operation

    def complete(self, operation_id: str, result: ExtractionResult) -> Operation:
        operation = self.get(operation_id)
        rows = result.metadata.rows_processed
        updated = self._store.update(
            operation_id,
            status=OperationStatus.COMPLETED,
            completed_at=_utcnow(),
            result=result,
            progress=OperationProgress(
                phase=OperationPhase.MAPPING,
                current_step="complete",
                rows_processed=rows,
                total_rows=rows,
                percent_complete=100,
            ),
        )
        logger.info("Completed operation %s with %d rows", operation_id, rows)
        return updated or operation

    def fail(self, operation_id: str, error: OperationError | str) -> Operation:
        operation = self.get(operation_id)
        if isinstance(error, str):
            error = OperationError(code="EXTRACTION_ERROR", message=error)
        updated = self._store.update(
            operation_id,
            status=OperationStatus.FAILED,
            failed_at=_utcnow(),
            error=error,
        )
        logger.error("Failed operation %s: [%s] %s", operation_id, error.code, error.message)
        return updated or operation

    def cancel(self, operation_id: str) -> Operation:
        operation = self.get(operation_id)
        if operation.status not in CANCELLABLE_STATUSES:
            raise OperationNotCancellableError(operation_id, operation.status)
        operation.cancellation.cancel()
        updated = self._store.update(
            operation_id,
            status=OperationStatus.CANCELLED,
            cancelled_at=_utcnow(),
        )
        logger.info("Cancelled operation %s", operation_id)
        return updated or operation

    def can_cancel(self, operation_id: str) -> bool:
        operation = self._store.get(operation_id)
        return operation is not None and operation.status in CANCELLABLE_STATUSES

    def get_status_counts(self) -> dict[OperationStatus, int]:
        return self._store.get_count_by_status()

    def cleanup(self) -> int:
        return self._store.cleanup_expired()

"""In-memory operation store with status-dependent TTL eviction."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sheetwise.core.config import OperationsConfig
from sheetwise.models.operation import Operation, OperationStatus

logger = logging.getLogger(__name__)


def ttl_table(config: OperationsConfig) -> dict[OperationStatus, timedelta]:
    """Retention window per status, measured from ``created_at``."""
    return {
        OperationStatus.PENDING: timedelta(seconds=config.pending_ttl),
        OperationStatus.PROCESSING: timedelta(seconds=config.processing_ttl),
        OperationStatus.COMPLETED: timedelta(seconds=config.completed_ttl),
        OperationStatus.FAILED: timedelta(seconds=config.failed_ttl),
        OperationStatus.CANCELLED: timedelta(seconds=config.cancelled_ttl),
    }


class MemoryOperationStore:
    """Dict-backed IOperationStore.

    No locking: each call is atomic with respect to the event loop, and two
    actors updating the same operation resolve as last-write-wins.
    """

    def __init__(self, config: OperationsConfig | None = None) -> None:
        self._config = config or OperationsConfig()
        self._ttl = ttl_table(self._config)
        self._operations: dict[str, Operation] = {}
        self._cleanup_task: asyncio.Task[None] | None = None

    def create(self, operation: Operation) -> None:
        self._operations[operation.operation_id] = operation

    def get(self, operation_id: str) -> Optional[Operation]:
        return self._operations.get(operation_id)

    def update(self, operation_id: str, **fields: Any) -> Optional[Operation]:
        """Shallow-merge top-level fields into the stored record."""
        operation = self._operations.get(operation_id)
        if operation is None:
            return None
        for name, value in fields.items():
            setattr(operation, name, value)
        return operation

    def delete(self, operation_id: str) -> bool:
        return self._operations.pop(operation_id, None) is not None

    def has(self, operation_id: str) -> bool:
        return operation_id in self._operations

    def get_all(self) -> list[Operation]:
        return list(self._operations.values())

    def get_count_by_status(self) -> dict[OperationStatus, int]:
        counts = {status: 0 for status in OperationStatus}
        for operation in self._operations.values():
            counts[operation.status] += 1
        return counts

    def clear(self) -> None:
        self._operations.clear()

    def cleanup_expired(self, now: Optional[datetime] = None) -> int:
        """Evict every operation older than its status's TTL."""
        now = now or datetime.now(timezone.utc)
        expired = [
            op for op in self._operations.values()
            if now - op.created_at > self._ttl[op.status]
        ]
        for operation in expired:
            del self._operations[operation.operation_id]
            logger.info(
                "Cleaned up expired operation %s (status: %s)",
                operation.operation_id, operation.status,
            )
        return len(expired)

    # ---- periodic sweep ----

    @property
    def cleanup_running(self) -> bool:
        return self._cleanup_task is not None and not self._cleanup_task.done()

    def start_cleanup(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self.cleanup_running:
            return
        self._cleanup_task = asyncio.get_running_loop().create_task(
            self._cleanup_loop(), name="operation-store-cleanup",
        )

    async def stop_cleanup(self) -> None:
        task, self._cleanup_task = self._cleanup_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _cleanup_loop(self) -> None:
        interval = self._config.cleanup_interval_seconds
        while True:
            await asyncio.sleep(interval)
            try:
                cleaned = self.cleanup_expired()
            except Exception:
                logger.exception("Operation cleanup sweep failed")
                continue
            if cleaned:
                logger.info("Cleaned up %d expired operations", cleaned)

"""ExtractionWorker — drives one operation from pending to a terminal status.

Cancellation is cooperative. The worker checks the operation's cancellation
token before and right after entering ``processing``, after parsing, and on
every progress report from the orchestrator (roughly once per LLM call). An
LLM call already in flight is never interrupted.
"""

from __future__ import annotations

import asyncio
import logging
import traceback
from functools import partial
from typing import Any

from sheetwise.agents.extraction.orchestrator import ExtractionOrchestrator
from sheetwise.agents.orchestrator.operations_manager import OperationsManager
from sheetwise.core.config import AppSettings
from sheetwise.core.exceptions import OperationCancelled, SheetwiseError
from sheetwise.models.operation import (
    TERMINAL_STATUSES,
    OperationError,
    OperationPhase,
    OperationProgress,
    OperationStatus,
)
from sheetwise.parsers.factory import ParserFactory

logger = logging.getLogger(__name__)


def classify_error(exc: BaseException) -> str:
    """Map an exception to an ``Operation.error.code``."""
    if isinstance(exc, SheetwiseError):
        return exc.code
    return "EXTRACTION_ERROR"


class ExtractionWorker:
    """Sequences parsing, orchestration and finalisation for an operation.

    Holds no per-operation state; every mutation goes through the manager.
    """

    def __init__(
        self,
        *,
        settings: AppSettings,
        manager: OperationsManager,
        parsers: ParserFactory,
        orchestrator: ExtractionOrchestrator,
    ) -> None:
        self._settings = settings
        self._manager = manager
        self._parsers = parsers
        self._orchestrator = orchestrator
        self._tasks: set[asyncio.Task[None]] = set()

    # ---- detached dispatch ----

    def dispatch(self, operation_id: str) -> asyncio.Task[None]:
        """Start processing in the background and return immediately."""
        task = asyncio.get_running_loop().create_task(
            self.process_operation(operation_id), name=f"extract-{operation_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(partial(self._on_task_done, operation_id))
        return task

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def shutdown(self) -> None:
        """Cancel in-flight tasks; their operations end up ``cancelled``."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _on_task_done(self, operation_id: str, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            if self._manager.can_cancel(operation_id):
                self._manager.cancel(operation_id)
            return
        exc = task.exception()
        if exc is None:
            return
        logger.error("Unhandled error escaped worker for %s", operation_id, exc_info=exc)
        try:
            operation = self._manager.get(operation_id)
            if operation.status not in TERMINAL_STATUSES:
                self._manager.fail(operation_id, OperationError(
                    code=classify_error(exc),
                    message=str(exc) or "Unknown error during extraction",
                ))
        except Exception:
            logger.exception("Could not record failure for operation %s", operation_id)

    # ---- processing ----

    async def process_operation(self, operation_id: str) -> None:
        log_extra = {"operation_id": operation_id}
        logger.info("Starting operation %s", operation_id, extra=log_extra)
        try:
            # A cancel that landed while pending must not be overwritten by processing.
            self._checkpoint(operation_id)
            self._manager.update_status(operation_id, OperationStatus.PROCESSING)
            operation = self._manager.get(operation_id)
            self._checkpoint(operation_id)

            self._manager.update_progress(
                operation_id,
                phase=OperationPhase.PARSING,
                current_step="Parsing file...",
                rows_processed=0,
                total_rows=0,
                percent_complete=0,
            )
            parser = self._parsers.get_parser(operation.filename)
            normalized = await parser.parse(
                operation.file_content, operation.filename, operation.sheet_name,
            )
            logger.info(
                "Parsed %d rows from %s", normalized.data.row_count, operation.filename,
            )
            self._checkpoint(operation_id)

            def on_progress(progress: OperationProgress) -> None:
                self._checkpoint(operation_id)
                self._manager.update_progress(
                    operation_id, **progress.model_dump(exclude_unset=True),
                )

            result = await self._orchestrator.extract(normalized, operation.context, on_progress)
            self._manager.complete(operation_id, result)
            logger.info("Completed operation %s", operation_id, extra=log_extra)
        except OperationCancelled:
            logger.info("Operation %s was cancelled; stopping", operation_id, extra=log_extra)
        except Exception as exc:
            self._handle_failure(operation_id, exc)

    def _checkpoint(self, operation_id: str) -> None:
        if self._manager.cancellation_token(operation_id).is_cancelled:
            raise OperationCancelled(operation_id)

    def _handle_failure(self, operation_id: str, exc: Exception) -> None:
        logger.error("Error processing operation %s: %s", operation_id, exc,
                     exc_info=exc, extra={"operation_id": operation_id})

        if not self._manager.exists(operation_id):
            logger.info("Operation %s no longer exists", operation_id)
            return
        operation = self._manager.get(operation_id)
        if operation.cancellation.is_cancelled:
            return

        details: dict[str, Any] = {"errorName": type(exc).__name__}
        if self._settings.environment == "dev":
            details["stack"] = "".join(traceback.format_exception(exc))
        phase = operation.progress.phase if operation.progress else OperationPhase.PARSING

        self._manager.fail(operation_id, OperationError(
            code=classify_error(exc),
            message=str(exc) or "Unknown error during extraction",
            phase=phase,
            details=details,
        ))

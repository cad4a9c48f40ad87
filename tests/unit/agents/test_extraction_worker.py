"""Tests for the background extraction worker."""

from __future__ import annotations

import asyncio

import pytest

from sheetwise.agents.extraction.llm import LLMGateway
from sheetwise.agents.extraction.orchestrator import ExtractionOrchestrator
from sheetwise.agents.orchestrator.extraction_worker import ExtractionWorker, classify_error
from sheetwise.agents.orchestrator.operations_manager import OperationsManager
from sheetwise.core.config import AppSettings
from sheetwise.core.exceptions import (
    ExtractionError,
    LLMError,
    LLMResponseParseError,
    OperationNotCancellableError,
    ParseError,
    UnsupportedFormatError,
)
from sheetwise.models.operation import OperationPhase, OperationStatus
from sheetwise.parsers.factory import ParserFactory
from sheetwise.persistence.memory_backend import MemoryOperationStore
from tests.fakes import MockModelProvider, StaticParser, discovery_json, make_context, make_normalized

PEOPLE = make_normalized(["Name", "Age"], [{"Name": "Ann", "Age": "31"}, {"Name": "Ben", "Age": "42"}])
DISCOVERY = discovery_json(direct={"person_name": ("Name", 9), "person_age": ("Age", 8)})


class FailingProvider:
    async def invoke(self, request):
        raise RuntimeError("throttled")

    def available_models(self):
        return []


class CancelDuringCallProvider(MockModelProvider):
    """Cancels the operation while the discovery call is in flight."""

    def __init__(self, manager: OperationsManager) -> None:
        super().__init__(default_response=DISCOVERY)
        self.manager = manager
        self.operation_id = ""

    async def invoke(self, request):
        self.manager.cancel(self.operation_id)
        return await super().invoke(request)


class BlockingProvider(MockModelProvider):
    def __init__(self) -> None:
        super().__init__(default_response=DISCOVERY)
        self.entered = asyncio.Event()

    async def invoke(self, request):
        self.entered.set()
        await asyncio.Event().wait()


@pytest.fixture
def manager():
    return OperationsManager(MemoryOperationStore())


def _worker(manager, provider=None, parser=None, environment="dev") -> ExtractionWorker:
    settings = AppSettings(environment=environment)
    provider = provider or MockModelProvider(default_response=DISCOVERY)
    orchestrator = ExtractionOrchestrator(settings=settings, llm=LLMGateway(provider, settings.llm))
    return ExtractionWorker(
        settings=settings,
        manager=manager,
        parsers=ParserFactory([parser or StaticParser(PEOPLE)]),
        orchestrator=orchestrator,
    )


def _create(manager, filename="people.csv", sheet_name=None) -> str:
    operation = manager.create(
        file_content=b"Name,Age\nAnn,31\nBen,42\n",
        filename=filename,
        context=make_context("person_name", "person_age"),
        sheet_name=sheet_name,
    )
    return operation.operation_id


class TestClassifyError:
    @pytest.mark.parametrize("exc,code", [
        (ParseError("x"), "PARSE_ERROR"),
        (UnsupportedFormatError("x"), "UNSUPPORTED_FORMAT"),
        (LLMError("x"), "LLM_ERROR"),
        (LLMResponseParseError("x"), "LLM_ERROR"),
        (ExtractionError("x"), "EXTRACTION_ERROR"),
        (RuntimeError("parse this"), "EXTRACTION_ERROR"),
        (ValueError("x"), "EXTRACTION_ERROR"),
    ])
    def test_codes(self, exc, code):
        assert classify_error(exc) == code


class TestProcessOperation:
    async def test_completes(self, manager):
        op_id = _create(manager)
        await _worker(manager).process_operation(op_id)

        operation = manager.get(op_id)
        assert operation.status == OperationStatus.COMPLETED
        assert operation.started_at is not None
        assert operation.completed_at is not None
        assert operation.failed_at is None and operation.cancelled_at is None
        assert operation.progress.percent_complete == 100
        assert operation.result.metadata.extraction_summary.direct_mappings == 2

    async def test_passes_sheet_name_to_parser(self, manager):
        parser = StaticParser(PEOPLE)
        op_id = _create(manager, sheet_name="Q1")
        await _worker(manager, parser=parser).process_operation(op_id)
        assert parser.calls == [("people.csv", "Q1")]

    async def test_parse_error(self, manager):
        op_id = _create(manager)
        await _worker(manager, parser=StaticParser(error=ParseError("Bad header row"))).process_operation(op_id)

        operation = manager.get(op_id)
        assert operation.status == OperationStatus.FAILED
        assert operation.failed_at is not None
        assert operation.error.code == "PARSE_ERROR"
        assert operation.error.message == "Bad header row"
        assert operation.error.phase == OperationPhase.PARSING
        assert operation.error.details["errorName"] == "ParseError"
        assert "Traceback" in operation.error.details["stack"]

    async def test_stack_omitted_outside_dev(self, manager):
        op_id = _create(manager)
        worker = _worker(manager, parser=StaticParser(error=ParseError("x")), environment="prod")
        await worker.process_operation(op_id)
        assert "stack" not in manager.get(op_id).error.details

    async def test_unsupported_format(self, manager):
        op_id = _create(manager, filename="people.pdf")
        await _worker(manager).process_operation(op_id)
        assert manager.get(op_id).error.code == "UNSUPPORTED_FORMAT"

    async def test_llm_failure(self, manager):
        op_id = _create(manager)
        await _worker(manager, provider=FailingProvider()).process_operation(op_id)

        operation = manager.get(op_id)
        assert operation.status == OperationStatus.FAILED
        assert operation.error.code == "LLM_ERROR"
        assert "throttled" in operation.error.message
        assert operation.error.phase == OperationPhase.DISCOVERY

    async def test_malformed_llm_reply(self, manager):
        op_id = _create(manager)
        await _worker(manager, provider=MockModelProvider(default_response="nope")).process_operation(op_id)
        assert manager.get(op_id).error.code == "LLM_ERROR"

    async def test_unexpected_error(self, manager):
        op_id = _create(manager)
        await _worker(manager, parser=StaticParser(error=RuntimeError("disk gone"))).process_operation(op_id)
        error = manager.get(op_id).error
        assert error.code == "EXTRACTION_ERROR"
        assert error.details["errorName"] == "RuntimeError"


class TestCancellation:
    async def test_cancelled_while_pending_never_starts(self, manager):
        parser = StaticParser(PEOPLE)
        op_id = _create(manager)
        manager.cancel(op_id)

        await _worker(manager, parser=parser).process_operation(op_id)

        operation = manager.get(op_id)
        assert operation.status == OperationStatus.CANCELLED
        assert operation.started_at is None
        assert parser.calls == []

    async def test_cancel_between_llm_calls(self, manager):
        provider = CancelDuringCallProvider(manager)
        op_id = _create(manager)
        provider.operation_id = op_id

        await _worker(manager, provider=provider).process_operation(op_id)

        operation = manager.get(op_id)
        assert operation.status == OperationStatus.CANCELLED
        assert operation.result is None
        assert operation.completed_at is None
        assert operation.error is None

    async def test_cancel_after_completion_is_rejected(self, manager):
        op_id = _create(manager)
        await _worker(manager).process_operation(op_id)
        with pytest.raises(OperationNotCancellableError):
            manager.cancel(op_id)
        assert manager.get(op_id).status == OperationStatus.COMPLETED


class TestDispatch:
    async def test_dispatch_runs_in_background(self, manager):
        worker = _worker(manager)
        op_id = _create(manager)
        task = worker.dispatch(op_id)
        assert manager.get(op_id).status == OperationStatus.PENDING
        await task
        await asyncio.sleep(0)
        assert manager.get(op_id).status == OperationStatus.COMPLETED
        assert worker.in_flight == 0

    async def test_escaped_exception_fails_operation(self, manager):
        worker = _worker(manager)
        op_id = _create(manager)

        async def explode(operation_id):
            raise RuntimeError("escaped")

        worker.process_operation = explode
        await asyncio.gather(worker.dispatch(op_id), return_exceptions=True)
        await asyncio.sleep(0)

        operation = manager.get(op_id)
        assert operation.status == OperationStatus.FAILED
        assert operation.error.code == "EXTRACTION_ERROR"
        assert operation.error.message == "escaped"

    async def test_shutdown_cancels_in_flight(self, manager):
        provider = BlockingProvider()
        worker = _worker(manager, provider=provider)
        op_id = _create(manager)
        worker.dispatch(op_id)
        await asyncio.wait_for(provider.entered.wait(), timeout=5)

        await worker.shutdown()
        await asyncio.sleep(0)

        assert manager.get(op_id).status == OperationStatus.CANCELLED
        assert worker.in_flight == 0

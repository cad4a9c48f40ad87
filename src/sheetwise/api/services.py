"""Construction of the long-lived components shared by all requests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from fastapi import Request

from sheetwise.agents.extraction.llm import LLMGateway
from sheetwise.agents.extraction.orchestrator import ExtractionOrchestrator
from sheetwise.agents.orchestrator.extraction_worker import ExtractionWorker
from sheetwise.agents.orchestrator.operations_manager import OperationsManager
from sheetwise.agents.transform.result_mapper import ResultMapper
from sheetwise.core.config import AppSettings
from sheetwise.core.protocols import IModelProvider
from sheetwise.model_providers.factory import create_model_provider
from sheetwise.parsers.csv_parser import CsvParser
from sheetwise.parsers.excel_parser import ExcelParser
from sheetwise.parsers.factory import ParserFactory
from sheetwise.parsers.generic_parser import GenericParser
from sheetwise.persistence import create_persistence
from sheetwise.persistence.memory_backend import MemoryOperationStore

APP_VERSION = "0.1.0"


@dataclass
class Services:
    settings: AppSettings
    store: MemoryOperationStore
    manager: OperationsManager
    llm: LLMGateway
    parsers: ParserFactory
    excel: ExcelParser
    orchestrator: ExtractionOrchestrator
    worker: ExtractionWorker
    mapper: ResultMapper
    started_at: datetime


def build_services(settings: AppSettings, provider: IModelProvider | None = None) -> Services:
    store = create_persistence(settings)
    manager = OperationsManager(store)
    llm = LLMGateway(provider or create_model_provider(settings), settings.llm)
    excel = ExcelParser()
    parsers = ParserFactory([CsvParser(), excel], fallback=GenericParser(llm))
    orchestrator = ExtractionOrchestrator(settings=settings, llm=llm)
    worker = ExtractionWorker(
        settings=settings, manager=manager, parsers=parsers, orchestrator=orchestrator,
    )
    return Services(
        settings=settings,
        store=store,
        manager=manager,
        llm=llm,
        parsers=parsers,
        excel=excel,
        orchestrator=orchestrator,
        worker=worker,
        mapper=ResultMapper(settings.extraction),
        started_at=datetime.now(timezone.utc),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services

"""Request/response bodies for the HTTP layer."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from sheetwise.agents.transform.result_mapper import ExtractionStats, SourceColumns
from sheetwise.models.base import CamelModel
from sheetwise.models.operation import Operation, OperationStatus, OperationStatusView


class FieldDefinitionIn(CamelModel):
    field: str = Field(min_length=1)
    description: str = Field(min_length=1)


class ExtractContextIn(CamelModel):
    """The ``context`` form field of POST /extract, JSON-encoded."""

    description: str = Field(min_length=1)
    fields: list[FieldDefinitionIn] = Field(min_length=1)


class OperationLinks(CamelModel):
    status: str
    cancel: str


class ExtractAccepted(CamelModel):
    operation_id: str
    status: OperationStatus
    created_at: datetime
    links: OperationLinks


class CancelResponse(CamelModel):
    operation_id: str
    status: OperationStatus
    cancelled_at: Optional[datetime] = None


class FinalOutputResponse(CamelModel):
    operation_id: str
    rows: list[dict[str, Optional[str]]]
    mapped_fields: list[str]
    source_columns: SourceColumns
    stats: ExtractionStats


def status_payload(operation: Operation) -> dict[str, Any]:
    """Status read model as JSON; absent optional top-level fields are omitted."""
    view = OperationStatusView.from_operation(operation).model_dump(by_alias=True, mode="json")
    return {key: value for key, value in view.items() if value is not None}


class ModelSummary(CamelModel):
    id: str
    name: str
    provider: str


class InvokeModelIn(CamelModel):
    """Body of POST /models/invoke; unset settings use the configured defaults."""

    prompt: str = Field(min_length=1)
    model: Optional[str] = None
    temperature: Optional[float] = Field(None, ge=0, le=1)
    max_tokens: Optional[int] = Field(None, gt=0)


class ModelUsage(CamelModel):
    input_tokens: int = 0
    output_tokens: int = 0


class InvokeModelOut(CamelModel):
    content: str
    model: str
    usage: Optional[ModelUsage] = None

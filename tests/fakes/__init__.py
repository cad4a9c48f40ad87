"""Shared test doubles and builders."""

from __future__ import annotations

import io
import json
from typing import Any, Optional

from sheetwise.core.exceptions import ParseError
from sheetwise.model_providers.mock_provider import MockModelProvider
from sheetwise.models.normalized_data import ExtractionContext, FieldDefinition, NormalizedData
from sheetwise.parsers.base import build_normalized


def make_normalized(headers: list[str], rows: list[dict[str, str]],
                    filename: str = "data.csv") -> NormalizedData:
    return build_normalized(filename, "csv", headers, rows)


def make_context(*fields: str, description: str = "Test extraction") -> ExtractionContext:
    return ExtractionContext(
        description=description,
        fields=[FieldDefinition(field=f, description=f"The {f}") for f in fields],
    )


def discovery_json(direct: Optional[dict[str, tuple[str, float]]] = None,
                   compound: Optional[dict[str, list[str]]] = None,
                   unmapped: Optional[list[str]] = None) -> str:
    return json.dumps({
        "directMappings": {
            field: {"sourceColumn": column, "confidence": confidence}
            for field, (column, confidence) in (direct or {}).items()
        },
        "compoundColumns": compound or {},
        "unmappedFields": unmapped or [],
    })


def compound_json(extractions: list[dict[str, Any]]) -> str:
    return json.dumps({"extractions": extractions})


class StaticParser:
    """IParser returning a fixed NormalizedData, or raising ``error``."""

    def __init__(self, normalized: Optional[NormalizedData] = None,
                 error: Optional[Exception] = None,
                 extensions: tuple[str, ...] = (".csv",)) -> None:
        self._normalized = normalized
        self._error = error
        self._extensions = list(extensions)
        self.calls: list[tuple[str, Optional[str]]] = []

    def supported_extensions(self) -> list[str]:
        return self._extensions

    async def parse(self, file_content: bytes, filename: str,
                    sheet_name: Optional[str] = None) -> NormalizedData:
        self.calls.append((filename, sheet_name))
        if self._error is not None:
            raise self._error
        if self._normalized is None:
            raise ParseError(f"No data configured for {filename}")
        return self._normalized


class FakeStreamingBody:
    def __init__(self, payload: dict[str, Any]) -> None:
        self._raw = json.dumps(payload).encode()

    def read(self) -> bytes:
        return self._raw


class FakeBedrockClient:
    """Records invoke_model calls and replies with a fixed body."""

    def __init__(self, payload: Optional[dict[str, Any]] = None,
                 error: Optional[Exception] = None) -> None:
        self._payload = payload or {}
        self._error = error
        self.calls: list[dict[str, Any]] = []

    def invoke_model(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(kwargs)
        if self._error is not None:
            raise self._error
        return {"body": FakeStreamingBody(self._payload)}


def workbook_bytes(sheets: dict[str, list[list[Any]]]) -> bytes:
    """Build an .xlsx in memory; each sheet is a list of rows, first row headers."""
    from openpyxl import Workbook

    workbook = Workbook()
    workbook.remove(workbook.active)
    for title, grid in sheets.items():
        sheet = workbook.create_sheet(title)
        for row in grid:
            sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


__all__ = [
    "FakeBedrockClient",
    "MockModelProvider",
    "StaticParser",
    "compound_json",
    "discovery_json",
    "make_context",
    "make_normalized",
    "workbook_bytes",
]

"""Parser output and the user-declared target schema."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field

from sheetwise.models.base import CamelModel

PARSER_VERSION = "1.0.0"


class NormalizedSource(CamelModel):
    filename: str
    type: Literal["csv", "excel", "raw"]
    sheet: Optional[str] = None


class NormalizedDataContent(CamelModel):
    """Tabular body. ``rows`` has ``row_count`` entries, keys drawn from ``headers``."""

    headers: list[str] = Field(default_factory=list)
    rows: list[dict[str, str]] = Field(default_factory=list)
    row_count: int = 0
    column_count: int = 0


class NormalizedMetadata(CamelModel):
    parsed_at: str
    parser_version: str = PARSER_VERSION


class NormalizedData(CamelModel):
    """Format-independent view of one parsed file (or one sheet)."""

    source: NormalizedSource
    data: NormalizedDataContent
    metadata: NormalizedMetadata


class FieldDefinition(CamelModel):
    """One target field the caller wants filled."""

    field: str
    description: str


class ExtractionContext(CamelModel):
    """Business description plus the target schema."""

    description: str
    fields: list[FieldDefinition] = Field(default_factory=list)

    def field_names(self) -> list[str]:
        return [f.field for f in self.fields]

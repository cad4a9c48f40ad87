"""Discovery, compound-extraction and final result models."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from sheetwise.models.base import CamelModel
from sheetwise.models.normalized_data import FieldDefinition

# --- Pass 1: discovery ---


class DirectMapping(CamelModel):
    source_column: str
    confidence: float = 0


class DiscoveryResult(CamelModel):
    """Column plan proposed by the discovery pass.

    A target field is expected in at most one of the three sections; this is
    not enforced here.
    """

    direct_mappings: dict[str, DirectMapping] = Field(default_factory=dict)
    compound_columns: dict[str, list[str]] = Field(default_factory=dict)
    unmapped_fields: list[str] = Field(default_factory=list)

    def claimed_source_columns(self) -> set[str]:
        claimed = {m.source_column for m in self.direct_mappings.values()}
        claimed.update(self.compound_columns)
        return claimed


# --- Pass 2: compound extraction ---


class IndexedValue(CamelModel):
    row_index: int
    value: str


class CompoundExtractionInput(CamelModel):
    """One compound column's worth of work for the extraction prompt."""

    source_column: str
    fields_to_extract: list[FieldDefinition] = Field(default_factory=list)
    values: list[IndexedValue] = Field(default_factory=list)


class CompoundFieldExtraction(CamelModel):
    value: Optional[str] = None
    confidence: float = 0


class CompoundRowExtraction(CamelModel):
    """Values pulled from one cell; ``row_index`` indexes the full row set."""

    row_index: int = 0
    source_column: str = ""
    fields: dict[str, CompoundFieldExtraction] = Field(default_factory=dict)


class CompoundExtractionResult(CamelModel):
    extractions: list[CompoundRowExtraction] = Field(default_factory=list)


# --- Final result ---


class DirectExtraction(CamelModel):
    value: str
    target_field: str
    confidence: float


class CompoundExtractionItem(CamelModel):
    target_field: str
    extracted_value: Optional[str] = None
    confidence: float = 0


class CompoundExtraction(CamelModel):
    source_value: str
    extractions: list[CompoundExtractionItem] = Field(default_factory=list)


class ExtractedRowData(CamelModel):
    """One source row. ``direct`` and ``compound`` are keyed by source column."""

    direct: dict[str, DirectExtraction] = Field(default_factory=dict)
    compound: dict[str, CompoundExtraction] = Field(default_factory=dict)
    unmapped: dict[str, str] = Field(default_factory=dict)


class ExtractionSummary(CamelModel):
    direct_mappings: int = 0
    compound_extractions: int = 0
    unmapped_columns: list[str] = Field(default_factory=list)
    unmapped_fields: list[str] = Field(default_factory=list)
    llm_calls: int = 0
    processing_time_ms: int = 0
    average_confidence: float = 0


class ExtractionMetadata(CamelModel):
    source_file: str
    source_sheet: Optional[str] = None
    rows_processed: int = 0
    extraction_summary: ExtractionSummary = Field(default_factory=ExtractionSummary)


class ExtractionResult(CamelModel):
    data: list[ExtractedRowData] = Field(default_factory=list)
    metadata: ExtractionMetadata

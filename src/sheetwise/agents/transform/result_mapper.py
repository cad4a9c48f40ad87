"""ResultMapper — flattens categorized extraction results for downstream use.

Every row produced by the orchestrator carries the same direct/compound/
unmapped keys, so the schema-level helpers read only the first row.
"""

from __future__ import annotations

from typing import Optional

from sheetwise.core.config import ExtractionConfig
from sheetwise.core.stats import mean_confidence
from sheetwise.models.base import CamelModel
from sheetwise.models.extraction import ExtractedRowData, ExtractionResult

FinalOutputRow = dict[str, Optional[str]]


class SourceColumns(CamelModel):
    direct: list[str] = []
    compound: list[str] = []
    unmapped: list[str] = []


class ExtractionStats(CamelModel):
    total_rows: int = 0
    direct_mappings: int = 0
    compound_extractions: int = 0
    average_confidence: float = 0
    low_confidence_count: int = 0


class ResultMapper:
    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self._low_confidence = (config or ExtractionConfig()).low_confidence_threshold

    def to_final_output(self, result: ExtractionResult) -> list[FinalOutputRow]:
        """One ``{target_field: value}`` dict per row; unmapped columns are dropped."""
        return [self._transform_row(row) for row in result.data]

    @staticmethod
    def _transform_row(row: ExtractedRowData) -> FinalOutputRow:
        output: FinalOutputRow = {}
        for compound in row.compound.values():
            for item in compound.extractions:
                output[item.target_field] = item.extracted_value
        # Direct mappings are written last so they win over a compound
        # extraction claiming the same target field.
        for extraction in row.direct.values():
            output[extraction.target_field] = extraction.value or None
        return output

    def get_mapped_fields(self, result: ExtractionResult) -> list[str]:
        if not result.data:
            return []
        first = result.data[0]
        fields = dict.fromkeys(e.target_field for e in first.direct.values())
        for compound in first.compound.values():
            fields.update(dict.fromkeys(i.target_field for i in compound.extractions))
        return list(fields)

    def get_source_columns(self, result: ExtractionResult) -> SourceColumns:
        if not result.data:
            return SourceColumns()
        first = result.data[0]
        return SourceColumns(
            direct=list(first.direct),
            compound=list(first.compound),
            unmapped=list(first.unmapped),
        )

    def get_extraction_stats(self, result: ExtractionResult) -> ExtractionStats:
        confidences: list[float] = []
        for row in result.data:
            confidences.extend(e.confidence for e in row.direct.values())
            for compound in row.compound.values():
                confidences.extend(i.confidence for i in compound.extractions)

        first = result.data[0] if result.data else None
        return ExtractionStats(
            total_rows=len(result.data),
            direct_mappings=len(first.direct) if first else 0,
            compound_extractions=sum(len(c.extractions) for c in first.compound.values()) if first else 0,
            average_confidence=mean_confidence(confidences),
            low_confidence_count=sum(1 for c in confidences if c < self._low_confidence),
        )

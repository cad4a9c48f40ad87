"""ExtractionOrchestrator — the two-pass LLM pipeline.

Pass 1 (discovery) looks at a sample and proposes direct mappings and
compound columns. Pass 2 (compound extraction) runs only when compound
columns exist, splitting rows into chunks when the prompt would exceed the
token budget. Chunks are sent one after another, never concurrently.
The mapping phase then applies the plan to every row of the full dataset.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Optional

from sheetwise.agents.base import BaseAgent
from sheetwise.agents.extraction.llm import LLMGateway
from sheetwise.agents.extraction.prompts import (
    build_compound_prompt,
    build_discovery_prompt,
    parse_compound_response,
    parse_discovery_response,
)
from sheetwise.agents.extraction.sampler import Sampler
from sheetwise.core.config import AppSettings
from sheetwise.core.protocols import ProgressCallback
from sheetwise.core.stats import mean_confidence, round_half_up
from sheetwise.models.extraction import (
    CompoundExtraction,
    CompoundExtractionInput,
    CompoundExtractionItem,
    CompoundFieldExtraction,
    CompoundRowExtraction,
    DirectExtraction,
    DiscoveryResult,
    ExtractedRowData,
    ExtractionMetadata,
    ExtractionResult,
    ExtractionSummary,
    IndexedValue,
)
from sheetwise.models.normalized_data import ExtractionContext, NormalizedData
from sheetwise.models.operation import OperationPhase, OperationProgress

logger = logging.getLogger(__name__)

EXTRACTION_START_PERCENT = 35
EXTRACTION_SPAN_PERCENT = 50

_CompoundLookup = dict[tuple[int, str], dict[str, CompoundFieldExtraction]]


class ExtractionOrchestrator(BaseAgent):
    """Drives discovery, optional compound extraction and result assembly."""

    def __init__(self, *, settings: AppSettings, llm: LLMGateway,
                 sampler: Sampler | None = None) -> None:
        super().__init__(settings=settings, llm=llm)
        self._config = settings.extraction
        self._sampler = sampler or Sampler(self._config)

    async def extract(
        self,
        normalized: NormalizedData,
        context: ExtractionContext,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ExtractionResult:
        started = time.monotonic()
        total = normalized.data.row_count

        def emit(phase: OperationPhase, step: str, percent: int, rows_processed: int = 0) -> None:
            if on_progress is not None:
                on_progress(OperationProgress(
                    phase=phase,
                    current_step=step,
                    rows_processed=rows_processed,
                    total_rows=total,
                    percent_complete=percent,
                ))

        # Pass 1: discovery
        emit(OperationPhase.DISCOVERY, "Sampling data for analysis", 5)
        sample = self._sampler.sample(normalized)

        emit(OperationPhase.DISCOVERY, "Analyzing column mappings", 10)
        prompt = build_discovery_prompt(sample, context, self._config.discovery_preview_rows)
        discovery = parse_discovery_response(await self._llm.infer(prompt))
        llm_calls = 1
        logger.info(
            "Discovery found %d direct mappings, %d compound columns, %d unmapped fields",
            len(discovery.direct_mappings), len(discovery.compound_columns),
            len(discovery.unmapped_fields),
        )
        emit(OperationPhase.DISCOVERY, "Discovery complete", 30)

        # Pass 2: compound extraction
        compound: list[CompoundRowExtraction] = []
        if discovery.compound_columns:
            emit(OperationPhase.EXTRACTION, "Extracting compound values", EXTRACTION_START_PERCENT)

            def on_chunk(rows_processed: int) -> None:
                percent = EXTRACTION_START_PERCENT + EXTRACTION_SPAN_PERCENT
                if total:
                    percent = EXTRACTION_START_PERCENT + int(round_half_up(
                        rows_processed / total * EXTRACTION_SPAN_PERCENT
                    ))
                emit(
                    OperationPhase.EXTRACTION,
                    f"Processing row {rows_processed} of {total}",
                    percent,
                    rows_processed,
                )

            compound, calls = await self.extract_compound_values(
                normalized, context, discovery, on_chunk,
            )
            llm_calls += calls

        # Mapping
        emit(OperationPhase.MAPPING, "Building final result", 90, total)
        confidences: list[float] = []
        rows = self.build_extracted_data(normalized, discovery, compound, confidences)

        claimed = discovery.claimed_source_columns()
        unmapped_columns = [h for h in normalized.data.headers if h not in claimed]
        average = mean_confidence(confidences)

        result = ExtractionResult(
            data=rows,
            metadata=ExtractionMetadata(
                source_file=normalized.source.filename,
                source_sheet=normalized.source.sheet,
                rows_processed=total,
                extraction_summary=ExtractionSummary(
                    direct_mappings=len(discovery.direct_mappings),
                    compound_extractions=sum(len(f) for f in discovery.compound_columns.values()),
                    unmapped_columns=unmapped_columns,
                    unmapped_fields=list(discovery.unmapped_fields),
                    llm_calls=llm_calls,
                    processing_time_ms=int((time.monotonic() - started) * 1000),
                    average_confidence=average,
                ),
            ),
        )

        emit(OperationPhase.MAPPING, "Complete", 100, total)
        return result

    async def extract_compound_values(
        self,
        normalized: NormalizedData,
        context: ExtractionContext,
        discovery: DiscoveryResult,
        on_chunk: Optional[Callable[[int], None]] = None,
    ) -> tuple[list[CompoundRowExtraction], int]:
        """Run pass 2. Returns the accumulated extractions and the LLM call count."""
        if not discovery.compound_columns:
            return [], 0

        rows = normalized.data.rows
        row_count = len(rows)

        def inputs_for(start: int, end: int) -> list[CompoundExtractionInput]:
            inputs = []
            for source_column, target_fields in discovery.compound_columns.items():
                inputs.append(CompoundExtractionInput(
                    source_column=source_column,
                    fields_to_extract=[f for f in context.fields if f.field in target_fields],
                    values=[
                        IndexedValue(row_index=i, value=rows[i].get(source_column) or "")
                        for i in range(start, end)
                    ],
                ))
            return inputs

        prompt = build_compound_prompt(inputs_for(0, row_count))
        estimated = self._llm.estimate_token_count(prompt)
        threshold = self._config.token_threshold
        extractions: list[CompoundRowExtraction] = []

        if estimated <= threshold:
            extractions.extend(parse_compound_response(await self._llm.infer(prompt)).extractions)
            if on_chunk is not None:
                on_chunk(row_count)
            return extractions, 1

        chunk_count = math.ceil(estimated / threshold)
        chunk_size = max(1, math.ceil(row_count / chunk_count))
        logger.info(
            "Compound prompt ~%d tokens exceeds %d; splitting %d rows into chunks of %d",
            estimated, threshold, row_count, chunk_size,
        )

        calls = 0
        for start in range(0, row_count, chunk_size):
            end = min(start + chunk_size, row_count)
            response = await self._llm.infer(build_compound_prompt(inputs_for(start, end)))
            calls += 1
            extractions.extend(parse_compound_response(response).extractions)
            if on_chunk is not None:
                on_chunk(end)

        return extractions, calls

    def build_extracted_data(
        self,
        normalized: NormalizedData,
        discovery: DiscoveryResult,
        compound: list[CompoundRowExtraction],
        confidences: list[float],
    ) -> list[ExtractedRowData]:
        """Apply the discovery plan to every row.

        Appends to ``confidences`` each direct confidence per row and each
        compound field confidence the model returned. Target fields the model
        omitted surface as null and are not counted.
        """
        lookup: _CompoundLookup = {}
        for extraction in compound:
            fields = lookup.setdefault((extraction.row_index, extraction.source_column), {})
            fields.update(extraction.fields)
            confidences.extend(f.confidence for f in extraction.fields.values())

        claimed = discovery.claimed_source_columns()
        result: list[ExtractedRowData] = []

        for row_index, row in enumerate(normalized.data.rows):
            direct: dict[str, DirectExtraction] = {}
            for target_field, mapping in discovery.direct_mappings.items():
                direct[mapping.source_column] = DirectExtraction(
                    value=row.get(mapping.source_column) or "",
                    target_field=target_field,
                    confidence=mapping.confidence,
                )
                confidences.append(mapping.confidence)

            compound_cells: dict[str, CompoundExtraction] = {}
            for source_column, target_fields in discovery.compound_columns.items():
                found = lookup.get((row_index, source_column), {})
                items = []
                for target_field in target_fields:
                    field = found.get(target_field)
                    item = CompoundExtractionItem(
                        target_field=target_field,
                        extracted_value=field.value if field else None,
                        confidence=field.confidence if field else 0,
                    )
                    items.append(item)
                compound_cells[source_column] = CompoundExtraction(
                    source_value=row.get(source_column) or "",
                    extractions=items,
                )

            unmapped = {
                header: row.get(header) or ""
                for header in normalized.data.headers
                if header not in claimed
            }

            result.append(ExtractedRowData(direct=direct, compound=compound_cells, unmapped=unmapped))

        return result

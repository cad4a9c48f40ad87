"""Row sampling for the discovery pass."""

from __future__ import annotations

from sheetwise.core.config import ExtractionConfig
from sheetwise.models.normalized_data import NormalizedData


class Sampler:
    """Bounds the rows shown to the discovery LLM call.

    Datasets of up to ``sample_threshold`` rows are returned as-is (same
    object; callers must not mutate it). Larger ones are cut to the first
    ``max_sample_size`` rows.
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        config = config or ExtractionConfig()
        self._threshold = config.sample_threshold
        self._max_size = config.max_sample_size

    def sample(self, normalized: NormalizedData) -> NormalizedData:
        if not self.will_sample(normalized.data.row_count):
            return normalized
        rows = normalized.data.rows[: self._max_size]
        data = normalized.data.model_copy(update={"rows": rows, "row_count": len(rows)})
        return normalized.model_copy(update={"data": data})

    def get_sample_size(self, total_rows: int) -> int:
        return min(total_rows, self._max_size) if self.will_sample(total_rows) else total_rows

    def will_sample(self, total_rows: int) -> bool:
        return total_rows > self._threshold

"""Helpers shared by the file parsers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional

from sheetwise.models.normalized_data import (
    PARSER_VERSION,
    NormalizedData,
    NormalizedDataContent,
    NormalizedMetadata,
    NormalizedSource,
)


def build_normalized(
    filename: str,
    source_type: Literal["csv", "excel", "raw"],
    headers: list[str],
    rows: list[dict[str, str]],
    sheet: Optional[str] = None,
) -> NormalizedData:
    return NormalizedData(
        source=NormalizedSource(filename=filename, type=source_type, sheet=sheet),
        data=NormalizedDataContent(
            headers=headers,
            rows=rows,
            row_count=len(rows),
            column_count=len(headers),
        ),
        metadata=NormalizedMetadata(
            parsed_at=datetime.now(timezone.utc).isoformat(),
            parser_version=PARSER_VERSION,
        ),
    )


def cell_to_str(value: object) -> str:
    """Stringify a cell, mapping None/NaN to the empty string."""
    if value is None or value != value:  # NaN
        return ""
    return str(value).strip()

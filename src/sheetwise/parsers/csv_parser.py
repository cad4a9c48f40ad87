"""Delimited-text parser."""

from __future__ import annotations

import asyncio
import io
import logging
from pathlib import PurePath
from typing import Optional

import pandas as pd

from sheetwise.core.exceptions import ParseError
from sheetwise.models.normalized_data import NormalizedData
from sheetwise.parsers.base import build_normalized, cell_to_str

logger = logging.getLogger(__name__)


class CsvParser:
    """Parses CSV/TSV into NormalizedData; every value comes back as a trimmed string."""

    def supported_extensions(self) -> list[str]:
        return [".csv", ".tsv", ".txt"]

    async def parse(
        self, file_content: bytes, filename: str, sheet_name: Optional[str] = None
    ) -> NormalizedData:
        return await asyncio.to_thread(self.parse_sync, file_content, filename)

    def parse_sync(self, file_content: bytes, filename: str) -> NormalizedData:
        sep = "\t" if PurePath(filename).suffix.lower() == ".tsv" else ","
        try:
            frame = pd.read_csv(
                io.BytesIO(file_content),
                sep=sep,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                encoding="utf-8",
            )
        except pd.errors.EmptyDataError:
            return build_normalized(filename, "csv", [], [])
        except (pd.errors.ParserError, UnicodeDecodeError) as exc:
            raise ParseError(f"Failed to parse CSV file {filename}: {exc}") from exc

        headers = [str(column).strip() for column in frame.columns]
        rows = [
            {header: cell_to_str(value) for header, value in zip(headers, record)}
            for record in frame.itertuples(index=False, name=None)
        ]
        logger.debug("Parsed %d rows, %d columns from %s", len(rows), len(headers), filename)
        return build_normalized(filename, "csv", headers, rows)

"""Excel workbook parser. Parses one sheet per call."""

from __future__ import annotations

import asyncio
import io
import zipfile
from pathlib import PurePath
from typing import Any, Optional

import pandas as pd
from openpyxl import load_workbook
from xlrd import XLRDError

from sheetwise.core.exceptions import ParseError
from sheetwise.models.normalized_data import NormalizedData
from sheetwise.parsers.base import build_normalized, cell_to_str

_UNREADABLE = (ValueError, KeyError, OSError, zipfile.BadZipFile, XLRDError)

# pandas reader engine per workbook extension
_ENGINES = {
    ".xlsx": "openpyxl",
    ".xlsm": "openpyxl",
    ".xls": "xlrd",
    ".xlsb": "pyxlsb",
}


class ExcelParser:
    def supported_extensions(self) -> list[str]:
        return [".xlsx", ".xls", ".xlsm", ".xlsb"]

    @staticmethod
    def engine_for(filename: Optional[str]) -> str:
        """Reader engine for ``filename``; openpyxl when the extension is unknown."""
        suffix = PurePath(filename or "").suffix.lower()
        return _ENGINES.get(suffix, "openpyxl")

    async def parse(
        self, file_content: bytes, filename: str, sheet_name: Optional[str] = None
    ) -> NormalizedData:
        return await asyncio.to_thread(self.parse_sync, file_content, filename, sheet_name)

    def parse_sync(
        self, file_content: bytes, filename: str, sheet_name: Optional[str] = None
    ) -> NormalizedData:
        try:
            book = pd.ExcelFile(io.BytesIO(file_content), engine=self.engine_for(filename))
        except _UNREADABLE as exc:
            raise ParseError(f"Unable to read Excel file {filename}: {exc}") from exc

        with book:
            sheets = [str(name) for name in book.sheet_names]
            if not sheets:
                raise ParseError("Excel file contains no sheets")
            if sheet_name and sheet_name not in sheets:
                raise ParseError(
                    f"Sheet '{sheet_name}' not found. Available sheets: {', '.join(sheets)}"
                )
            target = sheet_name or sheets[0]
            try:
                frame = book.parse(target, header=None, dtype=str, keep_default_na=False)
            except _UNREADABLE as exc:
                raise ParseError(f"Unable to read sheet '{target}': {exc}") from exc

        grid = frame.values.tolist()
        if not grid:
            return build_normalized(filename, "excel", [], [], sheet=target)

        header_row = [cell_to_str(h) for h in grid[0]]
        columns = [(i, h) for i, h in enumerate(header_row) if h]
        headers = [h for _, h in columns]

        rows = []
        for record in grid[1:]:
            row = {h: cell_to_str(record[i]) if i < len(record) else "" for i, h in columns}
            if any(row.values()):
                rows.append(row)

        return build_normalized(filename, "excel", headers, rows, sheet=target)

    def sheet_metadata(self, file_content: bytes, filename: Optional[str] = None) -> list[dict[str, Any]]:
        """Name and approximate size of every sheet.

        Workbooks read by openpyxl report sizes from sheet dimensions without
        loading cell data; legacy and binary workbooks are loaded through pandas.
        """
        engine = self.engine_for(filename)
        if engine != "openpyxl":
            return self._sheet_metadata_via_pandas(file_content, engine)
        try:
            workbook = load_workbook(io.BytesIO(file_content), read_only=True)
        except _UNREADABLE as exc:
            raise ParseError(f"Unable to read Excel file: {exc}") from exc
        try:
            return [
                {
                    "name": ws.title,
                    "rowCount": max((ws.max_row or 1) - 1, 0),
                    "columnCount": ws.max_column or 0,
                }
                for ws in workbook.worksheets
            ]
        finally:
            workbook.close()

    @staticmethod
    def _sheet_metadata_via_pandas(file_content: bytes, engine: str) -> list[dict[str, Any]]:
        try:
            frames = pd.read_excel(
                io.BytesIO(file_content), sheet_name=None, header=None, dtype=str, engine=engine,
            )
        except _UNREADABLE as exc:
            raise ParseError(f"Unable to read Excel file: {exc}") from exc
        return [
            {
                "name": str(name),
                "rowCount": max(frame.shape[0] - 1, 0),
                "columnCount": frame.shape[1],
            }
            for name, frame in frames.items()
        ]

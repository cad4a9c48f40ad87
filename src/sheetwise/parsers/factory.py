"""Select a parser by file extension."""

from __future__ import annotations

from pathlib import PurePath

from sheetwise.core.exceptions import UnsupportedFormatError
from sheetwise.core.protocols import IParser
from sheetwise.parsers.csv_parser import CsvParser
from sheetwise.parsers.excel_parser import ExcelParser


class ParserFactory:
    """Structured parsers first; anything else goes to ``fallback`` if one is set."""

    def __init__(self, parsers: list[IParser] | None = None,
                 fallback: IParser | None = None) -> None:
        self._parsers = parsers if parsers is not None else [CsvParser(), ExcelParser()]
        self._fallback = fallback

    def get_parser(self, filename: str) -> IParser:
        ext = PurePath(filename).suffix.lower()
        for parser in self._parsers:
            if ext in parser.supported_extensions():
                return parser
        if self._fallback is not None:
            return self._fallback
        raise UnsupportedFormatError(
            f"Unsupported file format '{ext or filename}'. "
            f"Supported formats: {', '.join(self.supported_extensions())}"
        )

    def is_supported(self, filename: str) -> bool:
        """True when a structured parser claims the extension."""
        ext = PurePath(filename).suffix.lower()
        return ext in self.supported_extensions()

    def can_handle(self, filename: str) -> bool:
        return self._fallback is not None or self.is_supported(filename)

    def supported_extensions(self) -> list[str]:
        return [ext for parser in self._parsers for ext in parser.supported_extensions()]

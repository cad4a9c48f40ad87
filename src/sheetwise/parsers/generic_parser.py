"""Fallback parser: asks the LLM to find a table in arbitrary text."""

from __future__ import annotations

import logging
from typing import Optional

from sheetwise.agents.extraction.llm import LLMGateway
from sheetwise.core.exceptions import ParseError, UnsupportedFormatError
from sheetwise.models.normalized_data import NormalizedData
from sheetwise.parsers.base import build_normalized
from sheetwise.parsers.binary_detection import binary_detection_reason
from sheetwise.parsers.prompts import build_raw_text_prompt, parse_raw_text_response

logger = logging.getLogger(__name__)


class GenericParser:
    """Used for extensions no other parser claims. Binary content is rejected."""

    def __init__(self, llm: LLMGateway) -> None:
        self._llm = llm

    def supported_extensions(self) -> list[str]:
        return []

    async def parse(
        self, file_content: bytes, filename: str, sheet_name: Optional[str] = None
    ) -> NormalizedData:
        reason = binary_detection_reason(file_content)
        if reason is not None:
            raise UnsupportedFormatError(f"Cannot process binary file: {filename}. {reason}")

        raw = file_content.decode("utf-8", errors="replace")
        logger.info("Sending %d characters of %s for structure discovery", len(raw), filename)
        discovery = parse_raw_text_response(await self._llm.infer(build_raw_text_prompt(raw)))
        if not discovery.success:
            raise ParseError(f"Could not extract structured data from {filename}: {discovery.reason}")

        logger.info(
            "Extracted %d rows with %d columns (%s)",
            len(discovery.rows), len(discovery.headers), discovery.data_pattern,
        )
        return build_normalized(filename, "raw", discovery.headers, discovery.rows)

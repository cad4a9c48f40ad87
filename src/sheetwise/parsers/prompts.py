"""Raw-text table discovery prompt for files no structured parser handles."""

from __future__ import annotations

import json
import re
from typing import Optional

from pydantic import BaseModel, Field

MAX_CONTENT_LENGTH = 50_000

RAW_TEXT_SYSTEM_CONTEXT = """You are a data extraction specialist. Your task is to analyze raw text content and extract any structured or tabular data it contains.

You must identify patterns in the data and convert them into a normalized JSON format with headers and rows."""


class RawTextDiscovery(BaseModel):
    success: bool
    headers: list[str] = Field(default_factory=list)
    rows: list[dict[str, str]] = Field(default_factory=list)
    data_pattern: Optional[str] = None
    reason: Optional[str] = None


def build_raw_text_prompt(raw_content: str, max_content_length: int = MAX_CONTENT_LENGTH) -> str:
    if len(raw_content) > max_content_length:
        raw_content = raw_content[:max_content_length] + "\n\n[Content truncated...]"

    return f"""{RAW_TEXT_SYSTEM_CONTEXT}

## Task: Extract Structured Data from Raw Text

Analyze the following raw text content and extract any structured or tabular data you can identify.

### Raw Content:
```
{raw_content}
```

### Instructions:
1. Look for any patterns that suggest tabular data (SQL INSERT statements, key-value pairs, repeated structures, delimited data, etc.)
2. Identify column headers/field names from the data pattern
3. Extract all rows of data you can find
4. Convert all values to strings

Important:
- Respond with ONLY a valid JSON object, no additional text
- All values must be strings
- If no structured data can be extracted, return an empty result

### Expected JSON Structure:
```json
{{
  "success": true,
  "headers": ["column1", "column2", "column3"],
  "rows": [
    {{"column1": "value1", "column2": "value2", "column3": "value3"}}
  ],
  "dataPattern": "Brief description of the data pattern found (e.g., 'SQL INSERT statements', 'CSV-like data', 'JSON array')"
}}
```

If you cannot identify any structured data, respond with:
```json
{{
  "success": false,
  "reason": "Description of why structured data could not be extracted"
}}
```

Respond with only the JSON object:"""


def parse_raw_text_response(response: str) -> RawTextDiscovery:
    """Never raises; problems come back as ``success=False`` with a reason."""
    match = re.search(r"\{[\s\S]*\}", response)
    if match is None:
        return RawTextDiscovery(success=False, reason="No JSON object found in LLM response")
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        return RawTextDiscovery(success=False, reason=f"Failed to parse LLM response: {exc}")

    if not isinstance(parsed, dict) or not parsed.get("success"):
        reason = parsed.get("reason") if isinstance(parsed, dict) else None
        return RawTextDiscovery(success=False, reason=reason or "LLM could not extract structured data")

    headers, rows = parsed.get("headers"), parsed.get("rows")
    if not isinstance(headers, list) or not isinstance(rows, list):
        return RawTextDiscovery(
            success=False, reason="Invalid response structure: missing headers or rows arrays",
        )

    return RawTextDiscovery(
        success=True,
        headers=[str(h) for h in headers],
        rows=[
            {str(k): "" if v is None else str(v) for k, v in row.items()}
            for row in rows if isinstance(row, dict)
        ],
        data_pattern=parsed.get("dataPattern"),
    )

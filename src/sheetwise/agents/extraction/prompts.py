"""Prompt builders and response parsers for the two extraction passes."""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import ValidationError

from sheetwise.core.exceptions import LLMResponseParseError
from sheetwise.models.extraction import (
    CompoundExtractionInput,
    CompoundExtractionResult,
    DiscoveryResult,
)
from sheetwise.models.normalized_data import ExtractionContext, NormalizedData

BASE_EXTRACTION_PROMPT = """You are a data extraction assistant specializing in mapping source data columns to target field schemas.

Your task is to analyze tabular data and identify how source columns map to requested target fields.

## Guidelines:
1. Match columns based on semantic meaning, not just exact name matches
2. Consider the data content when making mapping decisions
3. Be conservative - only map when you're confident
4. Provide a confidence score (1-10) for each mapping:
   - 10: Perfect match - exact column name or unambiguous data
   - 8-9: High confidence - strong semantic match or clear pattern
   - 6-7: Medium confidence - reasonable inference but some ambiguity
   - 4-5: Low confidence - educated guess based on limited evidence
   - 1-3: Very low confidence - weak match, needs user verification

## Important:
- Column names and field names are case-insensitive for matching purposes
- Consider common abbreviations (e.g., "qty" for "quantity", "amt" for "amount")
- Look at actual data values to help determine column purpose
- If multiple columns could match a field, choose the most likely one
"""

JSON_OUTPUT_INSTRUCTIONS = """
## Output Format:
Respond ONLY with valid JSON. Do not include any explanation or text outside the JSON object.
"""

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def extract_json_object(response: str, what: str) -> dict[str, Any]:
    """Pull the outermost ``{...}`` out of a model reply and decode it."""
    match = _JSON_OBJECT.search(response)
    if match is None:
        raise LLMResponseParseError(f"No JSON object found in {what} response")
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise LLMResponseParseError(f"Failed to parse {what} response: {exc}") from exc
    if not isinstance(parsed, dict):
        raise LLMResponseParseError(f"Failed to parse {what} response: expected a JSON object")
    return parsed


# ---------------------------------------------------------------------------
# Pass 1: discovery
# ---------------------------------------------------------------------------

def build_discovery_prompt(sample: NormalizedData, context: ExtractionContext,
                           preview_rows: int = 10) -> str:
    sample_data = json.dumps(
        {
            "headers": sample.data.headers,
            "sampleRows": sample.data.rows[:preview_rows],
            "totalRows": len(sample.data.rows),
        },
        indent=2,
    )
    fields = "\n".join(f'- "{f.field}": {f.description}' for f in context.fields)

    return f"""{BASE_EXTRACTION_PROMPT}
## Task: Column Discovery (Pass 1)

Analyze the source data and identify how columns map to the requested target fields.

### Business Context:
{context.description}

### Target Fields to Extract:
{fields}

### Source Data:
```json
{sample_data}
```

### Instructions:
1. For each target field, determine if there's a source column that directly contains that data
2. Identify any "compound" columns that contain multiple pieces of information (e.g., "Order-2024-NYC-WIDGET" contains order year, region, and product type)
3. List any target fields that cannot be mapped to any source column
4. Each target field must appear in exactly one of directMappings, compoundColumns or unmappedFields
{JSON_OUTPUT_INSTRUCTIONS}
### Expected JSON Structure:
```json
{{
  "directMappings": {{
    "target_field_name": {{
      "sourceColumn": "Source Column Name",
      "confidence": 8
    }}
  }},
  "compoundColumns": {{
    "Source Column Name": ["target_field_1", "target_field_2"]
  }},
  "unmappedFields": ["field_that_could_not_be_mapped"]
}}
```

Respond with only the JSON object:"""


def parse_discovery_response(response: str) -> DiscoveryResult:
    parsed = extract_json_object(response, "discovery")
    try:
        return DiscoveryResult.model_validate({
            "directMappings": parsed.get("directMappings") or {},
            "compoundColumns": parsed.get("compoundColumns") or {},
            "unmappedFields": parsed.get("unmappedFields") or [],
        })
    except ValidationError as exc:
        raise LLMResponseParseError(f"Failed to parse discovery response: {exc}") from exc


# ---------------------------------------------------------------------------
# Pass 2: compound extraction
# ---------------------------------------------------------------------------

def build_compound_prompt(inputs: list[CompoundExtractionInput]) -> str:
    requests = json.dumps([i.model_dump(by_alias=True) for i in inputs], indent=2)

    return f"""{BASE_EXTRACTION_PROMPT}
## Task: Compound Value Extraction (Pass 2)

Extract specific values from compound/combined data fields. Each source value may contain multiple pieces of information that need to be separated.

### Extraction Requests:
```json
{requests}
```

### Instructions:
1. For each source column, analyze the provided values
2. Extract the requested fields from each value
3. Provide a confidence score (1-10) for each extraction
4. If a field cannot be extracted, set value to null with low confidence
{JSON_OUTPUT_INSTRUCTIONS}
### Expected JSON Structure:
```json
{{
  "extractions": [
    {{
      "rowIndex": 0,
      "sourceColumn": "Order Ref",
      "fields": {{
        "region": {{ "value": "NYC", "confidence": 9 }},
        "order_year": {{ "value": "2024", "confidence": 10 }}
      }}
    }}
  ]
}}
```

Respond with only the JSON object:"""


def parse_compound_response(response: str) -> CompoundExtractionResult:
    parsed = extract_json_object(response, "compound extraction")
    extractions = parsed.get("extractions")
    if not isinstance(extractions, list):
        raise LLMResponseParseError('Compound extraction response missing "extractions" array')
    try:
        return CompoundExtractionResult.model_validate({
            "extractions": [
                {
                    "rowIndex": ext.get("rowIndex") or 0,
                    "sourceColumn": ext.get("sourceColumn") or "",
                    "fields": ext.get("fields") or {},
                }
                for ext in extractions
            ],
        })
    except (AttributeError, ValidationError) as exc:
        raise LLMResponseParseError(f"Failed to parse compound response: {exc}") from exc

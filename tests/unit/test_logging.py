"""Tests for log formatting."""

from __future__ import annotations

import json
import logging

from sheetwise.core.logging import JsonFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("sheetwise.test", logging.INFO, __file__, 1, "Parsed %d rows", (3,), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_fields():
    payload = json.loads(JsonFormatter().format(_record()))
    assert payload["level"] == "INFO"
    assert payload["logger"] == "sheetwise.test"
    assert payload["message"] == "Parsed 3 rows"
    assert "operation_id" not in payload


def test_json_formatter_includes_operation_id():
    payload = json.loads(JsonFormatter().format(_record(operation_id="op_123")))
    assert payload["operation_id"] == "op_123"

"""Upload endpoints: start an extraction, list workbook sheets."""

from __future__ import annotations

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import ValidationError

from sheetwise.api.errors import ApiError
from sheetwise.api.schemas import ExtractAccepted, ExtractContextIn, OperationLinks
from sheetwise.api.services import Services, get_services
from sheetwise.core.exceptions import ParseError
from sheetwise.models.normalized_data import ExtractionContext

logger = logging.getLogger(__name__)

router = APIRouter(tags=["extract"])


async def _read_upload(file: Optional[UploadFile], services: Services) -> bytes:
    if file is None or not file.filename:
        raise ApiError(400, "VALIDATION_ERROR", "No file provided")
    content = await file.read()
    limit = services.settings.upload.max_file_size_bytes
    if len(content) > limit:
        raise ApiError(413, "VALIDATION_ERROR", f"File exceeds maximum size of {limit} bytes")
    return content


def _parse_context(raw: Optional[str]) -> ExtractionContext:
    if not raw:
        raise ApiError(400, "VALIDATION_ERROR", "Context is required")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        raise ApiError(400, "VALIDATION_ERROR", "Invalid context JSON")
    try:
        validated = ExtractContextIn.model_validate(payload)
    except ValidationError:
        raise ApiError(
            400, "VALIDATION_ERROR",
            "Context must include a description and at least one field with a description",
        )
    return ExtractionContext.model_validate(validated.model_dump())


@router.post("/extract", status_code=202, response_model=ExtractAccepted, response_model_by_alias=True)
async def extract(
    file: Optional[UploadFile] = File(None),
    context: Optional[str] = Form(None),
    sheet_name: Optional[str] = Form(None, alias="sheetName"),
    services: Services = Depends(get_services),
) -> ExtractAccepted:
    """Accept a file and start a background extraction; poll the returned operation."""
    content = await _read_upload(file, services)
    filename = file.filename
    if not services.parsers.can_handle(filename):
        raise ApiError(
            400, "UNSUPPORTED_FORMAT",
            f"Unsupported file format. Supported formats: {', '.join(services.parsers.supported_extensions())}",
        )
    extraction_context = _parse_context(context)

    operation = services.manager.create(
        file_content=content,
        filename=filename,
        context=extraction_context,
        sheet_name=sheet_name or None,
    )
    services.worker.dispatch(operation.operation_id)

    base = f"/operations/{operation.operation_id}"
    return ExtractAccepted(
        operation_id=operation.operation_id,
        status=operation.status,
        created_at=operation.created_at,
        links=OperationLinks(status=base, cancel=f"{base}/cancel"),
    )


@router.post("/extract/sheets")
async def list_sheets(
    file: Optional[UploadFile] = File(None),
    services: Services = Depends(get_services),
) -> dict:
    """Sheet names and sizes of an Excel workbook, so a client can pick one."""
    content = await _read_upload(file, services)
    if not file.filename.lower().endswith(tuple(services.excel.supported_extensions())):
        raise ApiError(400, "UNSUPPORTED_FORMAT", "Sheet listing requires an Excel workbook")
    try:
        sheets = services.excel.sheet_metadata(content, file.filename)
    except ParseError as exc:
        raise ApiError(400, exc.code, str(exc))
    return {"filename": file.filename, "sheets": sheets}

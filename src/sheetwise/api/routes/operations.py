"""Polling, cancellation and final output for extraction operations."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from sheetwise.api.errors import ApiError
from sheetwise.api.schemas import CancelResponse, FinalOutputResponse, status_payload
from sheetwise.api.services import Services, get_services
from sheetwise.models.operation import OperationStatus

router = APIRouter(prefix="/operations", tags=["operations"])


@router.get("/{operation_id}")
async def get_operation(operation_id: str, services: Services = Depends(get_services)) -> dict:
    return status_payload(services.manager.get(operation_id))


@router.post("/{operation_id}/cancel", response_model=CancelResponse, response_model_by_alias=True)
async def cancel_operation(operation_id: str, services: Services = Depends(get_services)) -> CancelResponse:
    operation = services.manager.cancel(operation_id)
    return CancelResponse(
        operation_id=operation.operation_id,
        status=operation.status,
        cancelled_at=operation.cancelled_at,
    )


@router.get("/{operation_id}/output", response_model=FinalOutputResponse, response_model_by_alias=True)
async def get_output(operation_id: str, services: Services = Depends(get_services)) -> FinalOutputResponse:
    """Flattened ``{targetField: value}`` rows of a completed operation."""
    operation = services.manager.get(operation_id)
    if operation.status != OperationStatus.COMPLETED or operation.result is None:
        raise ApiError(
            400, "VALIDATION_ERROR",
            f"Operation {operation_id} is '{operation.status}'; output is only available once completed",
        )
    mapper = services.mapper
    result = operation.result
    return FinalOutputResponse(
        operation_id=operation_id,
        rows=mapper.to_final_output(result),
        mapped_fields=mapper.get_mapped_fields(result),
        source_columns=mapper.get_source_columns(result),
        stats=mapper.get_extraction_stats(result),
    )

"""Admin endpoints for operation store maintenance."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from sheetwise.api.services import Services, get_services

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"])


@router.get("/operations/counts")
async def operation_counts(services: Services = Depends(get_services)) -> dict:
    counts = services.manager.get_status_counts()
    return {
        "counts": {str(status): count for status, count in counts.items()},
        "inFlight": services.worker.in_flight,
    }


@router.post("/operations/cleanup")
async def cleanup_operations(services: Services = Depends(get_services)) -> dict[str, int]:
    """Run one TTL sweep immediately instead of waiting for the next interval."""
    removed = services.manager.cleanup()
    logger.info("Manual cleanup removed %d operations", removed)
    return {"removed": removed}

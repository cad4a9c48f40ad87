"""Health check endpoints."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from sheetwise.api.services import APP_VERSION, Services, get_services

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health(services: Services = Depends(get_services)) -> dict:
    now = datetime.now(timezone.utc)
    counts = services.manager.get_status_counts()
    return {
        "status": "healthy",
        "timestamp": now.isoformat(),
        "version": APP_VERSION,
        "uptime": round((now - services.started_at).total_seconds()),
        "operations": {str(status): count for status, count in counts.items()},
    }


@router.get("/ready")
async def ready(services: Services = Depends(get_services)) -> dict:
    agents = [await services.orchestrator.health_check()]
    if not services.store.cleanup_running:
        return {"status": "degraded", "reason": "operation cleanup is not running", "agents": agents}
    return {"status": "ready", "agents": agents}


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "alive"}

"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from sheetwise.api.errors import register_error_handlers
from sheetwise.api.routes import admin, extract, health, models, operations
from sheetwise.api.services import APP_VERSION, build_services
from sheetwise.core.config import AppSettings
from sheetwise.core.logging import setup_logging
from sheetwise.core.protocols import IModelProvider

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[AppSettings] = None,
    provider: Optional[IModelProvider] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``provider`` overrides the configured model provider; tests pass a mock.
    """
    settings = settings or AppSettings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Initialize and tear down application resources."""
        setup_logging(settings.log_level, format_json=settings.log_json)
        services = build_services(settings, provider)
        services.store.start_cleanup()
        app.state.settings = settings
        app.state.services = services
        logger.info("Sheetwise %s started (environment=%s, provider=%s)",
                    APP_VERSION, settings.environment, settings.llm.provider)
        try:
            yield
        finally:
            await services.worker.shutdown()
            await services.store.stop_cleanup()
            logger.info("Sheetwise stopped")

    app = FastAPI(
        title="Sheetwise Spreadsheet Extraction Service",
        version=APP_VERSION,
        lifespan=lifespan,
    )
    register_error_handlers(app)
    app.include_router(health.router)
    app.include_router(extract.router)
    app.include_router(operations.router)
    app.include_router(models.router, prefix="/models")
    app.include_router(admin.router, prefix="/admin")
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=8000)

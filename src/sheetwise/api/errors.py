"""HTTP error envelope and exception handlers."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from sheetwise.core.exceptions import LLMError, OperationNotCancellableError, OperationNotFoundError


class ApiError(Exception):
    """Raised by route handlers; rendered as ``{success: false, error: {...}}``."""

    def __init__(self, status_code: int, code: str, message: str,
                 details: dict[str, Any] | None = None) -> None:
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)


def _envelope(status_code: int, code: str, message: str,
              details: dict[str, Any] | None = None) -> JSONResponse:
    error: dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def _api_error(request: Request, exc: ApiError) -> JSONResponse:
        return _envelope(exc.status_code, exc.code, exc.message, exc.details)

    @app.exception_handler(OperationNotFoundError)
    async def _not_found(request: Request, exc: OperationNotFoundError) -> JSONResponse:
        return _envelope(404, exc.code, str(exc))

    @app.exception_handler(OperationNotCancellableError)
    async def _not_cancellable(request: Request, exc: OperationNotCancellableError) -> JSONResponse:
        return _envelope(400, exc.code, str(exc))

    @app.exception_handler(LLMError)
    async def _llm_error(request: Request, exc: LLMError) -> JSONResponse:
        return _envelope(502, exc.code, str(exc))

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        return _envelope(400, "VALIDATION_ERROR", f"{location}: {message}" if location else message)

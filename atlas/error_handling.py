"""
Global error handlers: every error response has the same JSON shape,
{"success": false, "error": ..., "status_code": ..., "path": ...}.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def _error_body(request: Request, status_code: int, message: Any) -> dict[str, Any]:
    return {
        "success": False,
        "error": message,
        "status_code": status_code,
        "path": str(request.url.path),
    }


def setup_error_handlers(app: FastAPI) -> None:
    """Register global error handlers on the FastAPI app."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.status_code, exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            {
                "field": " -> ".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]
        body = _error_body(request, 422, "Validation error")
        body["details"] = details
        return JSONResponse(status_code=422, content=body)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unexpected error on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content=_error_body(request, 500, "Internal server error"))

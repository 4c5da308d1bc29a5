"""Translation of service errors into the public error envelope."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from handpicked_api.application.errors import NotFoundError, UpstreamError, ValidationError

logger = logging.getLogger(__name__)


def error_envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"data": None, "meta": {"error": {"message": message}}})


async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return error_envelope(400, str(exc))


async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return error_envelope(404, str(exc))


async def handle_upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
    logger.error(f"Store failure on {request.method} {request.url.path}: {exc}")
    return error_envelope(500, "Internal error")


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(NotFoundError, handle_not_found)
    app.add_exception_handler(UpstreamError, handle_upstream_error)

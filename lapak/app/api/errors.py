from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from lapak.services.errors import ServiceError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, kind: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, "code": status_code, "kind": kind},
    )


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.kind, exc.message)
    return error_response(exc.status_code, exc.message, exc.kind)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # corps JSON mal formé / mauvais types -> 400 (pas 422)
    first = exc.errors()[0] if exc.errors() else {}
    loc = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    msg = first.get("msg", "Invalid request body")
    message = f"Invalid request body: {loc}: {msg}" if loc else f"Invalid request body: {msg}"
    return error_response(400, message, "ValidationError")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from cafe_core.core.exceptions import CafeError
from cafe_core.schemas.response import ErrorDetail, ErrorResponse

log = logging.getLogger("cafe_core.errors")


def _error_response(status_code: int, code: str, message: str, details: Optional[Any] = None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


# ----------- Exception Handlers (called by FastAPI) -----------

def cafe_error_handler(request: Request, exc: CafeError):
    """Handles business errors (validation, not found, insufficient stock, invalid state)."""
    if exc.status_code >= 500:
        log.error(f"{exc.code} on {request.url.path}: {exc.message}")
    return _error_response(exc.status_code, exc.code, exc.message, exc.details)


def http_exception_handler(request: Request, exc: HTTPException):
    """Handles exceptions raised by HTTPException (e.g., unknown routes)."""
    return _error_response(exc.status_code, "http_error", str(exc.detail))


def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handles request validation errors as 400 with field-level details."""
    details = [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return _error_response(400, "validation_error", "Invalid input data", details)


def generic_exception_handler(request: Request, exc: Exception):
    """Handles all unhandled exceptions (500 Internal Server Error)."""
    log.exception(f"Unhandled exception on path: {request.url.path}", exc_info=exc)
    return _error_response(500, "server_error", "Internal Server Error")


# ----------- Registration Function -----------

def setup_exception_handlers(app: FastAPI):
    """Registers all custom exception handlers with the FastAPI application."""
    app.add_exception_handler(CafeError, cafe_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    return app

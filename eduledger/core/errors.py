# eduledger/core/errors.py
"""Error taxonomy for the ledger services and the FastAPI handlers that render it."""
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


class LedgerException(Exception):
    """Base exception for the ledger services"""
    status_code: int = 500

    def __init__(self, message: str, detail: Optional[Any] = None):
        self.message = message
        self.detail = detail
        super().__init__(self.message)


class ValidationError(LedgerException):
    """Missing or malformed field. Not retried."""
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, detail={"field": field} if field else None)
        self.field = field


class NotFoundError(LedgerException):
    """Unknown id, class or student"""
    status_code = 404

    def __init__(self, resource: str, id: Any = None):
        message = f"{resource} not found"
        if id is not None:
            message += f" with id: {id}"
        super().__init__(message)
        self.resource = resource


class ClassNotFound(NotFoundError):
    def __init__(self, class_id: Any = None):
        super().__init__("Class", class_id)


class ConflictError(LedgerException):
    """Duplicate key on a single-record create. The caller must switch to update."""
    status_code = 409

    def __init__(self, message: str, key: Optional[dict] = None):
        super().__init__(message, detail={"key": key} if key else None)


class UpstreamUnavailable(LedgerException):
    """Storage unreachable."""
    status_code = 503

    def __init__(self, message: str = "Storage is unavailable", retryable: bool = False):
        super().__init__(message, detail={"retryable": retryable})
        self.retryable = retryable


def _error_body(exc: LedgerException) -> dict:
    body = {"error": exc.message, "type": exc.__class__.__name__}
    if exc.detail:
        body["detail"] = exc.detail
    return body


async def ledger_exception_handler(request: Request, exc: LedgerException):
    """Handle ledger exceptions"""
    if exc.status_code >= 500:
        logger.error(f"Ledger error: {exc.message} - Path: {request.url.path}")
    else:
        logger.info(f"{exc.__class__.__name__}: {exc.message} - Path: {request.url.path}")
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Render request validation failures as 400 with the offending fields"""
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg"),
        }
        for error in exc.errors()
    ]
    logger.info(f"Validation failed on {request.url.path}: {errors}")
    return JSONResponse(
        status_code=400,
        content={"error": "Validation Error", "type": "ValidationError", "detail": errors},
    )


async def storage_exception_handler(request: Request, exc: Exception):
    """Database connectivity failures surface as 503"""
    logger.error(f"Storage unavailable: {exc} - Path: {request.url.path}")
    retryable = request.url.path.rstrip("/").endswith("/bulk")
    return JSONResponse(
        status_code=503,
        content=_error_body(UpstreamUnavailable(retryable=retryable)),
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.exception(f"Unexpected error: {str(exc)} - Path: {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "type": "InternalError"}
    )


def register_exception_handlers(app):
    app.add_exception_handler(LedgerException, ledger_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(OperationalError, storage_exception_handler)
    app.add_exception_handler(InterfaceError, storage_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

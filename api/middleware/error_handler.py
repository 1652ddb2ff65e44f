"""Global exception handlers.

Every error leaves the API as ``{"error": {"code", "message", "details"}}``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from audit.errors import AuditError, ConfigurationError, PersistenceError

logger = structlog.get_logger()


class APIError(Exception):
    """Error with an HTTP status and a machine-readable code."""

    def __init__(
        self,
        message: str,
        code: str = "API_ERROR",
        status_code: int = 400,
        details: dict = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class NotFoundError(APIError):
    def __init__(self, resource: str, identifier: str):
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND",
            status_code=404,
            details={"resource": resource, "id": identifier},
        )


# Audit pipeline errors that reach a route: (status, code, public message)
AUDIT_ERROR_RESPONSES = {
    PersistenceError: (500, "PERSISTENCE_ERROR", "Failed to access stored documents"),
    ConfigurationError: (503, "NOT_CONFIGURED", "The audit service is not configured"),
}
AUDIT_ERROR_FALLBACK = (500, "AUDIT_ERROR", "The audit could not be completed")


def error_response(status_code: int, code: str, message: str, details: dict = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message, "details": details or {}}},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the handlers on the application."""

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
        logger.warning(
            "API error",
            code=exc.code,
            message=exc.message,
            path=request.url.path,
        )
        return error_response(exc.status_code, exc.code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """Report the first failing field plus a trimmed list of all errors."""
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(loc) for loc in first.get("loc", []))
        message = first.get("msg", "Validation error")

        logger.warning("Validation error", field=field, message=message, path=request.url.path)
        return error_response(
            422,
            "VALIDATION_ERROR",
            message,
            {"field": field, "errors": [{"loc": e.get("loc"), "msg": e.get("msg")} for e in errors]},
        )

    @app.exception_handler(AuditError)
    async def audit_error_handler(request: Request, exc: AuditError) -> JSONResponse:
        status_code, code, message = next(
            (v for cls, v in AUDIT_ERROR_RESPONSES.items() if isinstance(exc, cls)),
            AUDIT_ERROR_FALLBACK,
        )
        logger.error(
            "Audit error",
            code=code,
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return error_response(status_code, code, message)

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error("Database error", error=str(exc), path=request.url.path)
        return error_response(500, "DATABASE_ERROR", "A database error occurred")

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unexpected error",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")

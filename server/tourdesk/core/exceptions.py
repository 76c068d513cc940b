"""Custom exceptions and handlers producing the API response envelope."""

import logging
import traceback
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE codes surfaced by asyncpg
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


class ApiError(HTTPException):
    """
    Base exception for every error the API reports deliberately.

    The body is always the envelope ``{success: false, message, errors?}``.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize the error.

        Args:
            status_code: HTTP status code
            message: Human-readable message returned to the caller
            errors: Optional per-field violations ``[{field, message}]``
            headers: HTTP headers to include in response
        """
        self.message = message
        self.errors = errors
        super().__init__(status_code=status_code, detail=message, headers=headers)

    @property
    def envelope(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(ApiError):
    """Malformed or missing input."""

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(status_code=400, message=message, errors=errors)


class AuthenticationError(ApiError):
    """Missing, invalid or expired credentials."""

    def __init__(self, message: str = "Access denied. No token provided."):
        super().__init__(
            status_code=401,
            message=message,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(ApiError):
    """Authenticated but not entitled to the resource."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(status_code=403, message=message)


class NotFoundError(ApiError):
    """Exception for resource not found errors."""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[Any] = None,
        message: Optional[str] = None,
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            status_code=404,
            message=message or f"{resource_type.capitalize()} not found",
        )


class ConflictError(ApiError):
    """Uniqueness violation such as a duplicate email or review."""

    def __init__(self, message: str = "A record with this value already exists"):
        super().__init__(status_code=409, message=message)


class InvalidStateError(ApiError):
    """Operation is illegal for the resource's current state."""

    def __init__(self, message: str):
        super().__init__(status_code=400, message=message)


class InternalServerError(ApiError):
    """Exception for internal server errors."""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(status_code=500, message=message)


def _is_production(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(settings and settings.is_production)


def _field_name(location: tuple) -> str:
    # Drop the "body"/"query"/"path" prefix FastAPI puts in front
    parts = [str(part) for part in location]
    if parts and parts[0] in ("body", "query", "path", "header", "cookie"):
        parts = parts[1:]
    return ".".join(parts) or "request"


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Render an ApiError as the response envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.envelope,
        headers=exc.headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures as one ``{field, message}`` per violation."""
    errors = [
        {
            "field": _field_name(error.get("loc", ())),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]

    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Validation failed", "errors": errors},
    )


def classify_integrity_error(exc: IntegrityError) -> ApiError:
    """Translate a store constraint failure into the error taxonomy."""
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    text = str(exc.orig).lower()

    if sqlstate == UNIQUE_VIOLATION or "unique" in text or "duplicate" in text:
        return ConflictError("A record with this value already exists")
    if sqlstate == FOREIGN_KEY_VIOLATION or "foreign key" in text:
        return ValidationError("Referenced record does not exist")
    return ValidationError("Constraint violation")


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Convert database constraint errors to 409/400 envelopes."""
    error = classify_integrity_error(exc)
    logger.warning(
        "Database constraint violation",
        extra={
            "path": request.url.path,
            "status_code": error.status_code,
            "error": str(exc.orig),
        }
    )
    return await api_error_handler(request, error)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap framework HTTP errors (unknown route, bad method) in the envelope."""
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = f"Route not found: {request.method} {request.url.path}"
    else:
        message = str(exc.detail)

    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Convert unhandled exceptions to a 500 envelope.

    Outside production the exception message and stack trace are included.
    """
    logger.error(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
        },
        exc_info=exc,
    )

    content: Dict[str, Any] = {"success": False, "message": "Internal server error"}
    if not _is_production(request):
        content["message"] = str(exc) or content["message"]
        content["stack"] = "".join(traceback.format_exception(exc))

    return JSONResponse(status_code=500, content=content)


def register_exception_handlers(app) -> None:
    """Register every handler on the FastAPI app."""
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

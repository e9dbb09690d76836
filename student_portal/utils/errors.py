import traceback
from typing import Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .logging import get_logger
from .responses import ResponseBuilder

logger = get_logger()


class PortalError(Exception):
    """Base for errors that map onto one HTTP status and error envelope."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "PORTAL_ERROR"
    log_level = "ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code

    @property
    def error_type(self) -> str:
        return self.default_code


class DatabaseError(PortalError):
    """Raised by the document store when the backend rejects an operation."""

    default_code = "DB_ERROR"


class WriteError(PortalError):
    """A repository write (create, update, delete) failed in the backend."""

    default_code = "WRITE_ERROR"


class AuthenticationError(PortalError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = "AUTH_ERROR"
    log_level = "WARNING"

    def __init__(
        self, message: str = "Authentication failed", error_code: Optional[str] = None
    ):
        super().__init__(message, error_code)


class NotFoundError(PortalError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"
    log_level = "INFO"

    def __init__(self, message: str = "Resource not found", error_code: Optional[str] = None):
        super().__init__(message, error_code)


class ConfirmationRequiredError(PortalError):
    """A destructive action was requested without explicit confirmation."""

    status_code = status.HTTP_409_CONFLICT
    default_code = "CONFIRMATION_REQUIRED"
    log_level = "INFO"

    def __init__(
        self, message: str = "Action requires confirmation", error_code: Optional[str] = None
    ):
        super().__init__(message, error_code)


class FieldValidationError(PortalError):
    """One or more form fields failed validation; keyed by camelCase field name."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_code = "VALIDATION_ERROR"
    log_level = "INFO"

    def __init__(
        self,
        field_errors: Dict[str, str],
        message: str = "Form validation failed",
        error_code: Optional[str] = None,
    ):
        super().__init__(message, error_code)
        self.field_errors = field_errors

    def details(self) -> List[Dict[str, str]]:
        return [
            {"field": field, "message": message}
            for field, message in self.field_errors.items()
        ]


class LookupFailure(PortalError):
    """Postal code lookup failed. Only ever logged, never shown to the user."""

    default_code = "LOOKUP_FAILED"
    log_level = "WARNING"


def _notifications(request: Request) -> Optional[list]:
    notifier = getattr(request.state, "notifier", None)
    return notifier.dump() if notifier else None


def setup_error_handlers(app: FastAPI):
    """Setup custom error handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(f"HTTP Exception: {exc.status_code} - {exc.detail}")
        return ResponseBuilder.error(
            request=request,
            message=str(exc.detail),
            error_code="HTTP_ERROR",
            status_code=exc.status_code,
            meta={"http_status": exc.status_code},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        logger.warning(f"Request Validation Error: {exc.errors()}")

        return ResponseBuilder.error(
            request=request,
            message="Request validation failed",
            errors=[
                {
                    "field": " -> ".join(str(loc) for loc in error["loc"]),
                    "message": error["msg"],
                    "type": error["type"],
                }
                for error in exc.errors()
            ],
            error_code="VALIDATION_ERROR",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    # Field errors belong next to their inputs, so they go in `errors` only
    @app.exception_handler(FieldValidationError)
    async def field_validation_exception_handler(
        request: Request, exc: FieldValidationError
    ):
        logger.info(f"Form rejected: {sorted(exc.field_errors)}")

        return ResponseBuilder.error(
            request=request,
            message=exc.message,
            errors=exc.details(),
            error_code=exc.error_code,
            status_code=exc.status_code,
        )

    @app.exception_handler(PortalError)
    async def portal_exception_handler(request: Request, exc: PortalError):
        logger.log(exc.log_level, f"{type(exc).__name__}: {exc.message}")

        return ResponseBuilder.error(
            request=request,
            message=exc.message,
            error_code=exc.error_code,
            status_code=exc.status_code,
            meta={"error_type": exc.error_type},
            notifications=_notifications(request),
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"SQLAlchemy Error: {str(exc)}")

        # Don't expose internal database errors to users
        return ResponseBuilder.error(
            request=request,
            message="A database error occurred",
            error_code="DATABASE_ERROR",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            meta={"error_type": "SQLALCHEMY_ERROR"},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle all other unhandled exceptions"""
        logger.error(f"Unhandled Exception: {str(exc)}")
        logger.error(f"Traceback: {traceback.format_exc()}")

        return ResponseBuilder.error(
            request=request,
            message="An internal server error occurred",
            error_code="INTERNAL_ERROR",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            meta={"error_type": "INTERNAL_ERROR"},
        )

"""
Error envelope for every failure the API returns.

Each error is rendered as ``{"error": {code, message, timestamp, request_id, details}}``
and logged with the request id stamped by the request logging middleware.
"""

from typing import Dict, Any, Optional, List
from datetime import datetime, timezone
from fastapi import Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from credora.utils.exceptions import APIException, ValidationError
import logging
import uuid

logger = logging.getLogger(__name__)

# Request fields whose submitted values never appear in error details
SENSITIVE_FIELDS = {"password", "current_password", "new_password", "ssn", "token", "refresh_token"}
REDACTED = "[redacted]"

# Unique columns with an explanation clients can show as-is
UNIQUE_CONSTRAINT_MESSAGES = {
    "users.email": "An account with this email already exists",
    "landlords.user_id": "This user already has a landlord profile",
    "payments.payment_intent_id": "This payment has already been recorded",
    "apartment_finder_requests.reference": "Finder request reference already exists",
}

CONSTRAINT_MESSAGES = (
    ("foreign key", "Referenced record does not exist"),
    ("not null", "Required field cannot be empty"),
    ("check constraint", "Value does not meet validation requirements"),
)


class ErrorHandlerService:
    @staticmethod
    def format_error_response(
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Build the error envelope.

        Args:
            error_code: Stable machine-readable code such as ``NOT_FOUND``
            message: Human-readable message
            details: Optional per-field errors
            request_id: Request id echoed in the ``X-Request-ID`` header

        Returns:
            ``{"error": {...}}`` with ``details`` and ``request_id`` only when set
        """
        error: Dict[str, Any] = {
            "code": error_code,
            "message": message,
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
        }
        if details:
            error["details"] = details
        if request_id:
            error["request_id"] = request_id
        return {"error": error}

    @staticmethod
    def handle_api_exception(
        exception: APIException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        request_id = ErrorHandlerService._get_request_id(request)
        error_code = exception.error_code or "API_ERROR"
        ErrorHandlerService._log(
            logging.WARNING, request, request_id, f"{error_code} - {exception.detail}",
            error_code=error_code, status_code=exception.status_code,
        )

        # Field errors cover failed wizard steps and incomplete submissions
        details = exception.field_errors if isinstance(exception, ValidationError) else None

        return JSONResponse(
            status_code=exception.status_code,
            content=ErrorHandlerService.format_error_response(error_code, exception.detail, details, request_id),
            headers=exception.headers
        )

    @staticmethod
    def handle_validation_error(
        exception: Exception,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle request and Pydantic validation errors.

        Each failing field becomes ``{"field": "body -> email", "message", "type", "input"}``.
        Inputs of password, SSN and token fields are redacted.
        """
        request_id = ErrorHandlerService._get_request_id(request)

        details = []
        for error in exception.errors():
            location = [str(part) for part in error["loc"]]
            details.append({
                "field": " -> ".join(location),
                "message": error["msg"],
                "type": error["type"],
                "input": ErrorHandlerService._safe_input(location, error.get("input")),
            })

        ErrorHandlerService._log(
            logging.WARNING, request, request_id, f"Validation failed on {len(details)} field(s)",
            error_count=len(details),
        )

        content = ErrorHandlerService.format_error_response(
            "VALIDATION_ERROR", "Request validation failed", details, request_id
        )
        return JSONResponse(
            status_code=422,
            content=jsonable_encoder(content, custom_encoder={bytes: lambda b: b.decode("utf-8", "replace")})
        )

    @staticmethod
    def handle_database_error(
        exception: SQLAlchemyError,
        request: Optional[Request] = None
    ) -> JSONResponse:
        request_id = ErrorHandlerService._get_request_id(request)

        if isinstance(exception, IntegrityError):
            error_code, status_code = "INTEGRITY_ERROR", 409
            message = ErrorHandlerService._constraint_message(exception)
        else:
            error_code, status_code = "DATABASE_ERROR", 500
            message = "Database operation failed"

        ErrorHandlerService._log(
            logging.ERROR, request, request_id, f"{error_code} - {exception}",
            error_code=error_code, exception_type=type(exception).__name__, exc_info=True,
        )

        return JSONResponse(
            status_code=status_code,
            content=ErrorHandlerService.format_error_response(error_code, message, request_id=request_id)
        )

    @staticmethod
    def handle_http_exception(
        exception: HTTPException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """Framework errors such as unknown routes or wrong methods, coded ``HTTP_<status>``."""
        request_id = ErrorHandlerService._get_request_id(request)
        ErrorHandlerService._log(
            logging.WARNING, request, request_id, f"HTTP {exception.status_code} - {exception.detail}",
            status_code=exception.status_code,
        )

        return JSONResponse(
            status_code=exception.status_code,
            content=ErrorHandlerService.format_error_response(
                f"HTTP_{exception.status_code}", str(exception.detail), request_id=request_id
            ),
            headers=getattr(exception, "headers", None)
        )

    @staticmethod
    def handle_unexpected_error(
        exception: Exception,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """Log the traceback and return a generic 500 that hides internals."""
        request_id = ErrorHandlerService._get_request_id(request)
        ErrorHandlerService._log(
            logging.ERROR, request, request_id, f"Unhandled {type(exception).__name__} - {exception}",
            exception_type=type(exception).__name__, exc_info=exception,
        )

        return JSONResponse(
            status_code=500,
            content=ErrorHandlerService.format_error_response(
                "INTERNAL_SERVER_ERROR",
                "An unexpected error occurred. Please try again later.",
                request_id=request_id,
            )
        )

    @staticmethod
    def _log(level: int, request: Optional[Request], request_id: str, message: str, exc_info=None, **extra):
        extra.update({"request_id": request_id, "path": request.url.path if request else None})
        logger.log(level, f"[{request_id}] {message}", extra=extra, exc_info=exc_info)

    @staticmethod
    def _get_request_id(request: Optional[Request]) -> str:
        """Reuse the id stamped by the request logging middleware, or generate one."""
        if request is not None:
            request_id = getattr(request.state, "request_id", None)
            if request_id:
                return request_id
        return str(uuid.uuid4())[:8]

    @staticmethod
    def _safe_input(location: List[str], value: Any) -> Any:
        if any(part in SENSITIVE_FIELDS for part in location):
            return REDACTED
        if isinstance(value, dict):
            return {k: REDACTED if k in SENSITIVE_FIELDS else v for k, v in value.items()}
        return value

    @staticmethod
    def _constraint_message(exception: IntegrityError) -> str:
        error_msg = str(exception.orig).lower()

        if "unique" in error_msg or "duplicate" in error_msg:
            for column, message in UNIQUE_CONSTRAINT_MESSAGES.items():
                if column in error_msg:
                    return message
            return "Constraint violation: Duplicate value for unique field"

        for marker, message in CONSTRAINT_MESSAGES:
            if marker in error_msg:
                return f"Constraint violation: {message}"
        return "Data integrity constraint violation"

"""
Custom exception classes for the Credora API.
Provides structured error handling with appropriate HTTP status codes.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base API exception class."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code


class ValidationError(APIException):
    """Validation error exception."""

    def __init__(
        self,
        detail: str,
        field_errors: Optional[List[Dict[str, str]]] = None
    ):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code="VALIDATION_ERROR"
        )
        self.field_errors = field_errors or []


class NotFoundError(APIException):
    """Resource not found exception."""

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        detail = f"{resource} not found"
        if resource_id:
            detail += f" with ID: {resource_id}"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND"
        )


class UnauthorizedError(APIException):
    """Authentication required exception."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="UNAUTHORIZED",
            headers={"WWW-Authenticate": "Bearer"}
        )


class ForbiddenError(APIException):
    """Access forbidden exception."""

    def __init__(self, detail: str = "Access forbidden"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="FORBIDDEN"
        )


class ConflictError(APIException):
    """Resource conflict exception."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code="CONFLICT"
        )


class BadRequestError(APIException):
    """Bad request exception."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="BAD_REQUEST"
        )


# Authentication specific exceptions
class InvalidCredentialsError(UnauthorizedError):
    def __init__(self, detail: str = "Invalid email or password"):
        super().__init__(detail)


class EmailNotVerifiedError(UnauthorizedError):
    def __init__(self, detail: str = "Please verify your email address before signing in"):
        super().__init__(detail)


class TokenExpiredError(UnauthorizedError):
    def __init__(self, detail: str = "Token has expired"):
        super().__init__(detail)


class InvalidTokenError(UnauthorizedError):
    def __init__(self, detail: str = "Invalid token"):
        super().__init__(detail)


class InactiveUserError(ForbiddenError):
    def __init__(self, detail: str = "User account is inactive"):
        super().__init__(detail)


class InsufficientPermissionsError(ForbiddenError):
    """Insufficient permissions exception."""

    def __init__(self, action: str):
        super().__init__(f"Insufficient permissions to {action}")


class DuplicateResourceError(ConflictError):
    """Duplicate resource exception."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} with identifier '{identifier}' already exists")


# Domain exceptions
class ApartmentNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Apartment")


class ApplicationNotFoundError(NotFoundError):
    def __init__(self, application_id: Optional[str] = None):
        super().__init__("Application", application_id)


class ApplicationStatusError(BadRequestError):
    """Raised for a disallowed application status transition."""

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change application status from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested


class ApplicationIncompleteError(ValidationError):
    """Raised when an application is submitted with missing or invalid step data."""

    def __init__(self, field_errors: List[Dict[str, str]]):
        super().__init__("Application is incomplete", field_errors=field_errors)


class ResourceLimitExceededError(BadRequestError):
    """Resource limit exceeded exception."""

    def __init__(self, resource: str, limit: int):
        super().__init__(f"{resource} limit exceeded (maximum: {limit})")


class SubscriptionRequiredError(ForbiddenError):
    def __init__(self, detail: str = "An active subscription is required"):
        super().__init__(detail)


# Vendor exceptions
class WebhookSignatureError(APIException):
    """Webhook payload could not be authenticated."""

    def __init__(self, detail: str = "Invalid webhook signature", status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(
            status_code=status_code,
            detail=detail,
            error_code="INVALID_SIGNATURE"
        )


class PaymentProviderError(APIException):
    """Stripe rejected or failed a request."""

    def __init__(self, detail: str = "Payment provider error"):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=detail,
            error_code="PAYMENT_PROVIDER_ERROR"
        )


class VerificationProviderError(APIException):
    """Persona or Veriff rejected or failed a request."""

    def __init__(self, detail: str = "Identity verification provider error"):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=detail,
            error_code="VERIFICATION_PROVIDER_ERROR"
        )


class EmailDeliveryError(APIException):
    def __init__(self, detail: str = "Failed to send email"):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=detail,
            error_code="EMAIL_DELIVERY_ERROR"
        )


class ServiceUnavailableError(APIException):
    """Service unavailable exception."""

    def __init__(self, detail: str = "Service temporarily unavailable"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            error_code="SERVICE_UNAVAILABLE"
        )

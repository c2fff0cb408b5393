"""
Error response schemas for API documentation.
Every error body has the shape ``{"error": {code, message, timestamp, request_id, details}}``.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Any, Dict


class ErrorDetail(BaseModel):
    """Schema for individual error detail."""

    field: Optional[str] = Field(None, description="Field that caused the error", examples=["personal_info -> phone"])
    message: str = Field(..., description="Human-readable error message", examples=["Phone number must be 10 digits"])
    type: Optional[str] = Field(None, description="Error type identifier", examples=["value_error"])
    input: Optional[Any] = Field(None, description="Input value that caused the error")


class ErrorResponse(BaseModel):
    code: str = Field(..., description="Error code identifier", examples=["VALIDATION_ERROR"])
    message: str = Field(..., description="Human-readable error message", examples=["Request validation failed"])
    timestamp: str = Field(..., description="Error timestamp in ISO format", examples=["2025-01-01T00:00:00.000000Z"])
    request_id: Optional[str] = Field(None, description="Request identifier for tracking", examples=["abc12345"])
    details: Optional[List[ErrorDetail]] = Field(None, description="Per-field errors for validation failures")


class APIErrorResponse(BaseModel):
    """Schema for API error response wrapper."""

    error: ErrorResponse


def _error_example(description: str, code: str, message: str) -> Dict[str, Any]:
    return {
        "description": description,
        "model": APIErrorResponse,
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": code,
                        "message": message,
                        "timestamp": "2025-01-01T00:00:00.000000Z",
                        "request_id": "abc12345"
                    }
                }
            }
        }
    }


COMMON_ERROR_RESPONSES = {
    400: _error_example("Bad Request - Invalid request or business rule violation", "BAD_REQUEST", "Invalid amount provided"),
    401: _error_example("Unauthorized - Authentication required or failed", "UNAUTHORIZED", "Invalid email or password"),
    403: _error_example("Forbidden - Insufficient permissions", "FORBIDDEN", "Insufficient permissions to publish apartments"),
    404: _error_example("Not Found - Resource does not exist", "NOT_FOUND", "Apartment not found"),
    409: _error_example("Conflict - Resource already exists", "CONFLICT", "User with identifier 'jane@example.com' already exists"),
    422: _error_example("Validation Error - Request data failed validation", "VALIDATION_ERROR", "Request validation failed"),
    500: _error_example("Internal Server Error", "INTERNAL_SERVER_ERROR", "An unexpected error occurred. Please try again later."),
    502: _error_example("Bad Gateway - A vendor service rejected the request", "PAYMENT_PROVIDER_ERROR", "Failed to create payment intent"),
    503: _error_example("Service Unavailable - Vendor integration not configured", "SERVICE_UNAVAILABLE", "Payment processing is not configured"),
}


def get_error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """
    Get error response schemas for specific status codes.

    Args:
        status_codes: HTTP status codes to include

    Returns:
        Dictionary of error response schemas
    """
    return {
        code: COMMON_ERROR_RESPONSES[code]
        for code in status_codes
        if code in COMMON_ERROR_RESPONSES
    }


def get_auth_error_responses() -> Dict[int, Dict[str, Any]]:
    return get_error_responses(401, 403)


def get_common_error_responses() -> Dict[int, Dict[str, Any]]:
    return get_error_responses(400, 401, 403, 404, 422, 500)


def get_crud_error_responses() -> Dict[int, Dict[str, Any]]:
    return get_error_responses(400, 401, 403, 404, 409, 422, 500)


def get_vendor_error_responses() -> Dict[int, Dict[str, Any]]:
    """Error responses for routes that call Stripe or an identity vendor."""
    return get_error_responses(400, 401, 403, 422, 500, 502, 503)

"""
Pydantic schemas for authentication requests and responses.
Handles registration, login, token refresh, email verification and password reset.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from credora.models.user import UserRole
from credora.schemas.user import UserResponse


def _normalize_email(v: str) -> str:
    return v.lower().strip()


class RegisterRequest(BaseModel):
    """Registration request schema. Admin accounts cannot self-register."""

    first_name: str = Field(..., min_length=1, max_length=100, examples=["Jane"])
    last_name: str = Field(..., min_length=1, max_length=100, examples=["Doe"])
    email: EmailStr = Field(..., description="User's email address", examples=["jane@example.com"])
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (minimum 8 characters)",
        examples=["securepassword123"]
    )
    role: UserRole = Field(UserRole.TENANT, description="tenant or landlord", examples=["tenant"])
    phone: Optional[str] = Field(None, max_length=20)
    company_name: Optional[str] = Field(None, max_length=255, description="Landlord company name")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        if v == UserRole.ADMIN:
            raise ValueError("Admin accounts cannot be self-registered")
        return v


class LoginRequest(BaseModel):
    email: EmailStr = Field(..., examples=["jane@example.com"])
    password: str = Field(..., min_length=1, max_length=128, examples=["securepassword123"])

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., description="Valid refresh token")


class AccessTokenResponse(BaseModel):
    access_token: str = Field(..., description="New JWT access token")
    token_type: str = Field(default="bearer")
    expires_in: int = Field(..., description="Access token expiration time in seconds", examples=[1800])


class LoginResponse(BaseModel):
    """Complete login response schema."""

    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = Field(default="bearer")
    expires_in: int = Field(..., description="Access token expiration time in seconds", examples=[1800])


class RegisterResponse(BaseModel):
    user: UserResponse
    message: str = Field(..., examples=["Registration successful. Please check your email to verify your account."])


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., description="Email verification token")


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=8, max_length=128)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., description="Password reset token")
    new_password: str = Field(..., min_length=8, max_length=128)


class MessageResponse(BaseModel):
    message: str

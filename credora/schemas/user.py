"""
Pydantic schemas for user and landlord profile responses.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime
from credora.models.user import UserRole
from credora.models.landlord import SubscriptionPlan, SubscriptionStatus, VerificationStatus, VerificationProvider
from credora.utils.formatting import digits_only
import uuid


class UserResponse(BaseModel):
    """User response schema (excluding sensitive data)."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID = Field(..., description="User's unique identifier")
    email: EmailStr = Field(..., description="User's email address", examples=["jane@example.com"])
    first_name: str = Field(..., examples=["Jane"])
    last_name: str = Field(..., examples=["Doe"])
    full_name: str = Field(..., description="First and last name", examples=["Jane Doe"])
    phone: Optional[str] = None
    role: UserRole = Field(..., description="User's role", examples=["tenant"])
    is_active: bool
    email_verified: bool
    created_at: datetime


class LandlordResponse(BaseModel):
    """Landlord account with subscription and verification state."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    email: Optional[EmailStr] = None
    company_name: Optional[str] = None
    phone: Optional[str] = None
    subscription_plan: Optional[SubscriptionPlan] = None
    subscription_status: SubscriptionStatus
    subscription_current_period_end: Optional[datetime] = None
    property_limit: Optional[int] = Field(None, description="Maximum listings for the plan, null when unlimited")
    verification_status: VerificationStatus
    verification_provider: Optional[VerificationProvider] = None
    verified_at: Optional[datetime] = None
    created_at: datetime


class LandlordUpdate(BaseModel):
    """Editable landlord profile fields."""

    company_name: Optional[str] = Field(None, max_length=255, examples=["Sunset Properties LLC"])
    phone: Optional[str] = Field(None, examples=["(555) 123-4567"])
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v is None:
            return v
        if len(digits_only(v)) != 10:
            raise ValueError("Phone number must be 10 digits")
        return v.strip()

    @field_validator("company_name", "first_name", "last_name")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if v else v

"""
Pydantic schemas for the paid apartment finder service.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from credora.models.application import PaymentStatus
from credora.models.finder import FinderRequestStatus
import uuid


class FinderRequestCreate(BaseModel):
    """Concierge search request. A budget range and at least one location are required."""

    user_name: str = Field(..., min_length=1, max_length=255)
    user_email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    budget_min: Decimal = Field(..., ge=0)
    budget_max: Decimal = Field(..., gt=0)
    preferred_locations: List[str] = Field(..., min_length=1)
    bedrooms: Optional[int] = Field(None, ge=0, le=20)
    bathrooms: Optional[Decimal] = Field(None, ge=0, le=20)
    move_in_date: date
    amenities: List[str] = Field(default_factory=list)
    notes: Optional[str] = Field(None, max_length=5000)

    @field_validator("user_email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()

    @field_validator("user_name")
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("User information is required")
        return v.strip()

    @field_validator("preferred_locations")
    @classmethod
    def clean_locations(cls, v):
        cleaned = [location.strip() for location in v if location and location.strip()]
        if not cleaned:
            raise ValueError("At least one preferred location is required")
        return cleaned

    @model_validator(mode="after")
    def validate_budget(self):
        if self.budget_min > self.budget_max:
            raise ValueError("Minimum budget cannot exceed maximum budget")
        return self


class FinderRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    reference: str
    user_name: str
    user_email: EmailStr
    phone: Optional[str] = None
    budget_min: Decimal
    budget_max: Decimal
    preferred_locations: List[str]
    bedrooms: Optional[int] = None
    bathrooms: Optional[Decimal] = None
    move_in_date: date
    amenities: List[str]
    notes: Optional[str] = None
    status: FinderRequestStatus
    payment_status: PaymentStatus
    created_at: datetime


class FinderRequestCreated(BaseModel):
    request: FinderRequestResponse
    fee: Decimal
    message: str


class FinderRequestList(BaseModel):
    requests: List[FinderRequestResponse]
    total: int

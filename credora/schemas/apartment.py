"""
Pydantic schemas for apartment listings, search and landlord property submission.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from credora.utils.formatting import normalize_state, STATE_ABBREVIATIONS
import uuid


class FloorPlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[uuid.UUID] = None
    name: str
    bedrooms: int
    bathrooms: float
    square_feet: Optional[int] = None
    price: float
    available: bool = True


class FloorPlanCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["The Magnolia"])
    bedrooms: int = Field(..., ge=0, le=20)
    bathrooms: Decimal = Field(..., ge=0, le=20)
    square_feet: Optional[int] = Field(None, gt=0)
    price: Decimal = Field(..., gt=0)
    available: bool = True


class ApartmentListing(BaseModel):
    """Listing card with display defaults already applied."""

    id: uuid.UUID
    title: str
    building_name: str
    description: str
    address: str
    city: str
    state: str
    zip_code: str
    neighborhood: str
    price: float
    price_range: str = Field(..., examples=["$1,250/mo"])
    bedrooms: int
    bathrooms: float
    square_feet: int
    property_type: str
    floor_plan: str = Field(..., examples=["2BR/1.5BA"])
    image_url: str
    images: List[str]
    amenities: List[str]
    pet_friendly: bool
    parking: bool
    deposit: float
    lease_terms: List[str]
    available_date: Optional[date] = None
    contact_phone: str
    contact_email: str
    management_company: Optional[str] = None
    rating: float
    review_count: int
    verified: bool
    created_at: datetime


class ApartmentDetail(ApartmentListing):
    floor_plans: List[FloorPlanResponse]
    website: Optional[str] = None
    apply_url: str


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class ApartmentSearchResponse(BaseModel):
    apartments: List[ApartmentListing]
    pagination: PaginationMeta


class LandlordPropertyCreate(BaseModel):
    """Property form submitted from the landlord portal."""

    title: str = Field(..., min_length=3, max_length=255, examples=["Sunny 2BR near Five Points"])
    address: str = Field(..., min_length=3, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., examples=["AL"])
    zip_code: Optional[str] = Field(None, max_length=10)
    description: Optional[str] = Field(None, max_length=5000)
    rent: Decimal = Field(..., gt=0, description="Monthly rent in USD", examples=[1250])
    deposit: Optional[Decimal] = Field(None, ge=0)
    bedrooms: int = Field(..., ge=0, le=20)
    bathrooms: Decimal = Field(..., ge=0, le=20)
    square_footage: Optional[int] = Field(None, gt=0)
    property_type: str = Field("Apartment", max_length=50)
    amenities: List[str] = Field(default_factory=list, examples=[["Pet Friendly", "Parking", "Pool"]])
    images: List[str] = Field(default_factory=list)
    lease_terms: List[str] = Field(default_factory=list)
    available_date: Optional[date] = None
    contact_phone: Optional[str] = Field(None, max_length=20)
    contact_email: Optional[EmailStr] = None
    management_company: Optional[str] = Field(None, max_length=255)
    floor_plans: List[FloorPlanCreate] = Field(default_factory=list)

    @field_validator("title", "address", "city")
    @classmethod
    def validate_text(cls, v):
        if not v or not v.strip():
            raise ValueError("This field is required")
        return v.strip()

    @field_validator("state")
    @classmethod
    def validate_state(cls, v):
        state = normalize_state(v)
        if state not in STATE_ABBREVIATIONS:
            raise ValueError("Please select a valid US state")
        return state

    @field_validator("amenities", "images", "lease_terms")
    @classmethod
    def clean_list(cls, v):
        return [item.strip() for item in v if item and item.strip()]


class LandlordProperty(BaseModel):
    """Landlord portal view of an owned listing."""

    id: uuid.UUID
    title: str
    address: str
    city: str
    state: str
    rent: float
    bedrooms: int
    bathrooms: float
    status: str = Field(..., description="active when published, pending while under review")
    verified: bool
    date_added: datetime


class LandlordPropertyList(BaseModel):
    properties: List[LandlordProperty]
    total: int
    property_limit: Optional[int] = None


class LandlordPropertyCreated(BaseModel):
    apartment: LandlordProperty
    message: str

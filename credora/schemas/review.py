"""
Pydantic schemas for apartment reviews.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import List
from datetime import datetime
import uuid


class ReviewCreate(BaseModel):
    reviewer_name: str = Field(..., min_length=1, max_length=255)
    reviewer_email: EmailStr
    rating: int = Field(..., ge=1, le=5, description="Rating must be between 1 and 5")
    title: str = Field(..., min_length=1, max_length=255)
    comment: str = Field(..., min_length=1, max_length=5000)

    @field_validator("reviewer_name", "title", "comment")
    @classmethod
    def validate_text(cls, v):
        if not v.strip():
            raise ValueError("All fields are required")
        return v.strip()


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    apartment_id: uuid.UUID
    reviewer_name: str
    rating: int
    title: str
    comment: str
    created_at: datetime


class ReviewListResponse(BaseModel):
    reviews: List[ReviewResponse]
    average_rating: float
    total_reviews: int

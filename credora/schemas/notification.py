"""
Pydantic schemas for transactional email requests.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal


class ConfirmationEmailRequest(BaseModel):
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    payment_intent_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0, description="Amount in dollars")
    submitted_at: Optional[datetime] = None


class EmailSentResponse(BaseModel):
    success: bool
    message_id: Optional[str] = None
    skipped: bool = Field(False, description="True when email delivery is not configured")

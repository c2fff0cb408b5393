"""
Pydantic schemas for landlord identity verification.
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from credora.models.landlord import VerificationProvider, VerificationStatus


class PersonaInquiryRequest(BaseModel):
    template_id: Optional[str] = Field(None, description="Defaults to the configured Persona template")
    redirect_uri: Optional[str] = Field(None, max_length=500)


class PersonaInquiryResponse(BaseModel):
    inquiry_id: str
    session_token: Optional[str] = None
    template_id: str
    status: str = "created"


class VeriffSessionRequest(BaseModel):
    callback_url: Optional[str] = Field(None, max_length=500)


class VeriffSessionResponse(BaseModel):
    session_id: str
    session_url: Optional[str] = None
    session_token: Optional[str] = None
    status: str = "created"


class VerificationStatusResponse(BaseModel):
    status: VerificationStatus
    provider: Optional[VerificationProvider] = None
    reference: Optional[str] = None
    verified_at: Optional[datetime] = None
    is_verified: bool


class VerificationWebhookAck(BaseModel):
    success: bool = True
    status: Optional[VerificationStatus] = None

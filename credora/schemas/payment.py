"""
Pydantic schemas for Stripe payment intents, webhooks and landlord subscriptions.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime
from decimal import Decimal
from credora.models.landlord import SubscriptionPlan, SubscriptionStatus
from credora.models.payment import PaymentPurpose


class PaymentIntentCreate(BaseModel):
    """Amount is in dollars; it is converted to cents for Stripe."""

    amount: Decimal = Field(..., description="Amount in dollars", examples=[55.00])
    currency: str = Field("usd", min_length=3, max_length=3)
    description: Optional[str] = Field(None, max_length=500, examples=["Credora cosigner application fee"])
    metadata: Dict[str, Any] = Field(default_factory=dict)
    customer_email: Optional[EmailStr] = None
    purpose: PaymentPurpose = PaymentPurpose.APPLICATION_FEE

    @field_validator("currency")
    @classmethod
    def lower_currency(cls, v):
        return v.lower()


class PaymentIntentResponse(BaseModel):
    client_secret: Optional[str] = None
    payment_intent_id: str
    amount: int = Field(..., description="Amount in cents as charged by Stripe")
    currency: str
    status: str


class PaymentIntentStatusResponse(BaseModel):
    id: str
    status: str
    amount: int
    currency: str
    description: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created: Optional[int] = None


class WebhookAck(BaseModel):
    received: bool = True


class SubscriptionPlanInfo(BaseModel):
    plan: SubscriptionPlan
    name: str
    price: Decimal = Field(..., description="Monthly price in USD")
    price_display: str = Field(..., examples=["$25/mo"])
    property_limit: Optional[int] = Field(None, description="Null when unlimited")
    features: List[str]
    available: bool = Field(..., description="False when the Stripe price id is not configured")


class SubscriptionCreate(BaseModel):
    plan: SubscriptionPlan
    payment_method_id: str = Field(..., min_length=3, examples=["pm_1Nabc123"])


class SubscriptionCreated(BaseModel):
    subscription_id: str
    client_secret: Optional[str] = None
    status: SubscriptionStatus
    customer_id: str
    current_period_end: Optional[datetime] = None


class SubscriptionInfo(BaseModel):
    plan: Optional[SubscriptionPlan] = None
    status: SubscriptionStatus
    active: bool
    property_limit: Optional[int] = None
    properties_used: int
    current_period_end: Optional[datetime] = None
    stripe_subscription_id: Optional[str] = None

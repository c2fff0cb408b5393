"""
Payment record mirrored from Stripe payment intents.
"""

from sqlalchemy import String, Numeric, JSON, ForeignKey, Enum as SQLEnum, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from credora.database import Base
from decimal import Decimal
import enum
import uuid
from typing import Any, Dict, Optional


class PaymentRecordStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"
    REFUNDED = "refunded"

    @classmethod
    def from_stripe(cls, value: Optional[str]) -> "PaymentRecordStatus":
        """Map a Stripe PaymentIntent status onto the local status."""
        mapping = {
            "succeeded": cls.SUCCEEDED,
            "processing": cls.PROCESSING,
            "canceled": cls.CANCELED,
            "requires_payment_method": cls.PENDING,
            "requires_confirmation": cls.PENDING,
            "requires_action": cls.PENDING,
            "requires_capture": cls.PROCESSING,
        }
        return mapping.get(value, cls.PENDING)


class PaymentPurpose(str, enum.Enum):
    APPLICATION_FEE = "application_fee"
    APARTMENT_FINDER_FEE = "apartment_finder_fee"
    SUBSCRIPTION = "subscription"


class Payment(Base):
    """
    Local copy of a Stripe payment intent.
    Created when the intent is created and finalized by the webhook.
    """

    __tablename__ = "payments"

    payment_intent_id: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="Stripe PaymentIntent id"
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        comment="Amount in dollars"
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="usd")

    status: Mapped[PaymentRecordStatus] = mapped_column(
        SQLEnum(PaymentRecordStatus),
        nullable=False,
        default=PaymentRecordStatus.PENDING,
        index=True
    )

    purpose: Mapped[PaymentPurpose] = mapped_column(
        SQLEnum(PaymentPurpose),
        nullable=False,
        default=PaymentPurpose.APPLICATION_FEE
    )

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    application_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("applications.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    customer_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    failure_message: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    payment_metadata: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<Payment(intent={self.payment_intent_id}, amount={self.amount}, status={self.status})>"

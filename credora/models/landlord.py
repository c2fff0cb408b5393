"""
Landlord account model.
Tracks the landlord profile, Stripe subscription and ID-verification state.
"""

from sqlalchemy import String, DateTime, ForeignKey, Enum as SQLEnum, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from credora.database import Base
from datetime import datetime
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from credora.models.user import User
    from credora.models.apartment import Apartment


class SubscriptionPlan(str, enum.Enum):
    """Landlord subscription plans."""
    BASIC = "basic"
    PREMIUM = "premium"


class SubscriptionStatus(str, enum.Enum):
    """Subscription status mirrored from Stripe."""
    INACTIVE = "inactive"
    INCOMPLETE = "incomplete"
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"

    @classmethod
    def from_stripe(cls, value: Optional[str]) -> "SubscriptionStatus":
        """Map a Stripe subscription status string onto the local enum."""
        if value == "incomplete_expired":
            return cls.CANCELED
        if value == "paused":
            return cls.INACTIVE
        try:
            return cls(value)
        except ValueError:
            return cls.INCOMPLETE


class VerificationStatus(str, enum.Enum):
    """Identity verification status."""
    NOT_STARTED = "not_started"
    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"
    EXPIRED = "expired"
    RESUBMISSION_REQUIRED = "resubmission_required"


class VerificationProvider(str, enum.Enum):
    PERSONA = "persona"
    VERIFF = "veriff"


# Maximum listings per plan; None means unlimited
PLAN_PROPERTY_LIMITS = {
    SubscriptionPlan.BASIC: 5,
    SubscriptionPlan.PREMIUM: None,
}


class Landlord(Base):
    """
    Landlord account linked one-to-one with a user.
    Mutated by sign-up, the subscription webhook and the verification callback.
    """

    __tablename__ = "landlords"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True
    )

    company_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Subscription
    subscription_plan: Mapped[Optional[SubscriptionPlan]] = mapped_column(
        SQLEnum(SubscriptionPlan),
        nullable=True,
        comment="Current subscription plan"
    )

    subscription_status: Mapped[SubscriptionStatus] = mapped_column(
        SQLEnum(SubscriptionStatus),
        nullable=False,
        default=SubscriptionStatus.INACTIVE,
        index=True
    )

    stripe_customer_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    stripe_subscription_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)

    subscription_current_period_end: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )

    # Identity verification
    verification_status: Mapped[VerificationStatus] = mapped_column(
        SQLEnum(VerificationStatus),
        nullable=False,
        default=VerificationStatus.NOT_STARTED,
        index=True
    )

    verification_provider: Mapped[Optional[VerificationProvider]] = mapped_column(
        SQLEnum(VerificationProvider),
        nullable=True
    )

    verification_reference: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        index=True,
        comment="Persona inquiry id or Veriff session id"
    )

    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="landlord", lazy="selectin")

    apartments: Mapped[List["Apartment"]] = relationship(
        "Apartment",
        back_populates="landlord",
        lazy="noload"
    )

    def __repr__(self) -> str:
        return f"<Landlord(id={self.id}, plan={self.subscription_plan}, status={self.subscription_status})>"

    @property
    def email(self) -> Optional[str]:
        return self.user.email if self.user else None

    @property
    def has_active_subscription(self) -> bool:
        return self.subscription_status in (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING)

    @property
    def property_limit(self) -> Optional[int]:
        """Maximum number of listings allowed by the current plan."""
        if self.subscription_plan is None:
            return 0
        return PLAN_PROPERTY_LIMITS[self.subscription_plan]

    @property
    def is_identity_verified(self) -> bool:
        return self.verification_status == VerificationStatus.APPROVED

"""
Tenant cosigner application model.
Holds the wizard step data, document upload flags, payment and review status.
"""

from sqlalchemy import String, Text, Numeric, DateTime, JSON, ForeignKey, Enum as SQLEnum, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from credora.database import Base
from datetime import datetime
from decimal import Decimal
import enum
import uuid
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from credora.models.user import User
    from credora.models.apartment import Apartment


class ApplicationStatus(str, enum.Enum):
    """Application review lifecycle."""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    DENIED = "denied"


class PaymentStatus(str, enum.Enum):
    """Local mirror of the vendor payment outcome."""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


# Allowed status transitions: draft -> submitted -> under_review -> approved/denied
APPLICATION_TRANSITIONS = {
    ApplicationStatus.DRAFT: {ApplicationStatus.SUBMITTED},
    ApplicationStatus.SUBMITTED: {ApplicationStatus.UNDER_REVIEW},
    ApplicationStatus.UNDER_REVIEW: {ApplicationStatus.APPROVED, ApplicationStatus.DENIED},
    ApplicationStatus.APPROVED: set(),
    ApplicationStatus.DENIED: set(),
}


class Application(Base):
    """
    Cosigner application submitted by a tenant.
    Persisted as a draft while the wizard runs and locked once submitted.
    """

    __tablename__ = "applications"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Applicant"
    )

    apartment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("apartments.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    status: Mapped[ApplicationStatus] = mapped_column(
        SQLEnum(ApplicationStatus),
        nullable=False,
        default=ApplicationStatus.DRAFT,
        index=True
    )

    payment_status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus),
        nullable=False,
        default=PaymentStatus.PENDING
    )

    # Wizard step data
    personal_info: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    employment_info: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    rental_info: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    documents: Mapped[Dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="Document upload flags keyed by document type"
    )

    payment_intent_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    application_fee: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        default=Decimal("55.00")
    )

    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    decision_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    user: Mapped["User"] = relationship("User", lazy="noload")
    apartment: Mapped[Optional["Apartment"]] = relationship("Apartment", lazy="noload")

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, status={self.status}, payment={self.payment_status})>"

    @property
    def is_editable(self) -> bool:
        return self.status == ApplicationStatus.DRAFT

    def can_transition_to(self, new_status: ApplicationStatus) -> bool:
        return new_status in APPLICATION_TRANSITIONS[self.status]

    @property
    def applicant_name(self) -> str:
        first = (self.personal_info or {}).get("first_name", "")
        last = (self.personal_info or {}).get("last_name", "")
        return f"{first} {last}".strip()

    @property
    def applicant_email(self) -> Optional[str]:
        return (self.personal_info or {}).get("email")

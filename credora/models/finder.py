"""
Apartment finder (paid concierge search) request model.
"""

from sqlalchemy import String, Text, Integer, Numeric, Date, JSON, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from credora.database import Base
from credora.models.application import PaymentStatus
from datetime import date
from decimal import Decimal
import enum
import secrets
import time
from typing import List, Optional


class FinderRequestStatus(str, enum.Enum):
    SUBMITTED = "submitted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def generate_finder_reference() -> str:
    """Public reference such as ``af_1718031234567_k3j9x2ab1``."""
    return f"af_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"


class ApartmentFinderRequest(Base):
    """Request for an agent to search apartments on the tenant's behalf."""

    __tablename__ = "apartment_finder_requests"

    reference: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
        default=generate_finder_reference
    )

    user_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    budget_min: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), nullable=False)
    budget_max: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), nullable=False)
    preferred_locations: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=3, scale=1), nullable=True)
    move_in_date: Mapped[date] = mapped_column(Date, nullable=False)
    amenities: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[FinderRequestStatus] = mapped_column(
        SQLEnum(FinderRequestStatus),
        nullable=False,
        default=FinderRequestStatus.SUBMITTED
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus),
        nullable=False,
        default=PaymentStatus.PENDING
    )
    payment_intent_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

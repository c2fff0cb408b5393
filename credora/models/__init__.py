"""
Database models for the Credora API.
"""

from credora.models.user import User, UserRole
from credora.models.landlord import (
    Landlord,
    SubscriptionPlan,
    SubscriptionStatus,
    VerificationStatus,
    VerificationProvider,
    PLAN_PROPERTY_LIMITS,
)
from credora.models.apartment import Apartment, FloorPlan
from credora.models.application import (
    Application,
    ApplicationStatus,
    PaymentStatus,
    APPLICATION_TRANSITIONS,
)
from credora.models.payment import Payment, PaymentPurpose, PaymentRecordStatus
from credora.models.review import Review
from credora.models.finder import ApartmentFinderRequest, FinderRequestStatus

__all__ = [
    "User",
    "UserRole",
    "Landlord",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "VerificationStatus",
    "VerificationProvider",
    "PLAN_PROPERTY_LIMITS",
    "Apartment",
    "FloorPlan",
    "Application",
    "ApplicationStatus",
    "PaymentStatus",
    "APPLICATION_TRANSITIONS",
    "Payment",
    "PaymentPurpose",
    "PaymentRecordStatus",
    "Review",
    "ApartmentFinderRequest",
    "FinderRequestStatus",
]

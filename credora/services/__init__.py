"""
Service layer for business logic implementation.
Contains services for accounts, listings, applications, payments, landlord
billing and verification, and the vendor-backed helpers.
"""

from .auth import AuthService
from .apartment import ApartmentService
from .application import ApplicationService
from .payment import PaymentService
from .subscription import SubscriptionService
from .verification import VerificationService
from .address import AddressService
from .email import EmailService
from .review import ReviewService
from .finder import FinderService
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "ApartmentService",
    "ApplicationService",
    "PaymentService",
    "SubscriptionService",
    "VerificationService",
    "AddressService",
    "EmailService",
    "ReviewService",
    "FinderService",
    "ErrorHandlerService",
]

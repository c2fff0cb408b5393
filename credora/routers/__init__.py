"""
API route handlers for the Credora API.
"""

from .auth import router as auth_router
from .apartments import router as apartments_router
from .applications import router as applications_router
from .payments import router as payments_router
from .landlords import router as landlords_router
from .verification import router as verification_router
from .address import router as address_router
from .notifications import router as notifications_router
from .finder import router as finder_router

__all__ = [
    "auth_router",
    "apartments_router",
    "applications_router",
    "payments_router",
    "landlords_router",
    "verification_router",
    "address_router",
    "notifications_router",
    "finder_router",
]

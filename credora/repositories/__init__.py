"""
Repository layer for data access.
"""

from credora.repositories.base import BaseRepository
from credora.repositories.user import UserRepository, LandlordRepository
from credora.repositories.apartment import ApartmentRepository, ApartmentSearchFilters
from credora.repositories.application import ApplicationRepository
from credora.repositories.payment import PaymentRepository
from credora.repositories.review import ReviewRepository, FinderRequestRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "LandlordRepository",
    "ApartmentRepository",
    "ApartmentSearchFilters",
    "ApplicationRepository",
    "PaymentRepository",
    "ReviewRepository",
    "FinderRequestRepository",
]

"""
FastAPI dependency injection utilities for authentication, database sessions
and services. Provides reusable dependencies for route protection and user
extraction.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from credora.database import get_db
from credora.models.landlord import Landlord
from credora.models.user import User, UserRole
from credora.repositories.user import LandlordRepository
from credora.services.address import AddressService
from credora.services.apartment import ApartmentService
from credora.services.application import ApplicationService
from credora.services.auth import AuthService
from credora.services.email import EmailService
from credora.services.finder import FinderService
from credora.services.payment import PaymentService
from credora.services.review import ReviewService
from credora.services.subscription import SubscriptionService
from credora.services.verification import VerificationService
from credora.utils.exceptions import (
    APIException,
    UnauthorizedError,
    InactiveUserError,
    InsufficientPermissionsError,
    NotFoundError,
)


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_email_service() -> EmailService:
    return EmailService()


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
) -> AuthService:
    """
    Get authentication service instance.

    Args:
        db: Database session
        email_service: Outgoing email sender

    Returns:
        AuthService instance
    """
    return AuthService(db, email_service)


async def get_apartment_service(
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
) -> ApartmentService:
    return ApartmentService(db, email_service)


async def get_application_service(
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
) -> ApplicationService:
    return ApplicationService(db, email_service)


async def get_payment_service(db: AsyncSession = Depends(get_db)) -> PaymentService:
    return PaymentService(db)


async def get_subscription_service(db: AsyncSession = Depends(get_db)) -> SubscriptionService:
    return SubscriptionService(db)


async def get_verification_service(db: AsyncSession = Depends(get_db)) -> VerificationService:
    return VerificationService(db)


async def get_review_service(db: AsyncSession = Depends(get_db)) -> ReviewService:
    return ReviewService(db)


async def get_finder_service(db: AsyncSession = Depends(get_db)) -> FinderService:
    return FinderService(db)


def get_address_service() -> AddressService:
    return AddressService()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from JWT token.

    Raises:
        UnauthorizedError: If no token provided or token is invalid
        TokenExpiredError: If token is expired
        InactiveUserError: If user account is inactive
    """
    if not credentials:
        raise UnauthorizedError("Authentication token required")

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except APIException:
        raise
    except Exception as e:
        raise UnauthorizedError(f"Authentication failed: {str(e)}")


async def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    if not current_user.is_active:
        raise InactiveUserError()

    return current_user


async def get_current_admin_user(
    current_user: User = Depends(get_current_active_user)
) -> User:
    """
    Get current user with admin role.

    Raises:
        InsufficientPermissionsError: If user is not an admin
    """
    if current_user.role != UserRole.ADMIN:
        raise InsufficientPermissionsError("access admin resources")

    return current_user


async def get_current_landlord(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
) -> Landlord:
    """
    Get the landlord profile of the current user.

    Raises:
        InsufficientPermissionsError: If user is not a landlord
        NotFoundError: If the landlord profile is missing
    """
    if current_user.role != UserRole.LANDLORD:
        raise InsufficientPermissionsError("access landlord resources")

    landlord = await LandlordRepository(db).get_by_user_id(current_user.id)
    if not landlord:
        raise NotFoundError("Landlord profile")

    return landlord


# Optional authentication dependency (for public endpoints that can benefit from user context)
async def get_optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[User]:
    if not credentials:
        return None

    try:
        user = await auth_service.get_current_user(credentials.credentials)
        return user if user.is_active else None
    except APIException:
        return None

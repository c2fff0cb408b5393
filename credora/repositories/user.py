"""
User and landlord repositories for account management.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from credora.repositories.base import BaseRepository
from credora.models.user import User, UserRole
from credora.models.landlord import Landlord
from typing import Optional, Dict, Any
import uuid
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for user accounts with password handling."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation and password hashing.

        Args:
            user_data: Must include email, password, first_name, last_name.
                       Optional: role (defaults to TENANT), phone, is_active,
                       email_verified.

        Returns:
            Created user instance

        Raises:
            ValueError: If the email is invalid, taken, or the password too short
        """
        data = dict(user_data)
        email = User.validate_email_format(data.pop("email"))

        if await self.get_by_email(email):
            raise ValueError(f"User with email {email} already exists")

        hashed_password = User.hash_password(data.pop("password"))

        create_data = {
            **data,
            "email": email,
            "hashed_password": hashed_password,
            "role": data.get("role", UserRole.TENANT),
            "is_active": data.get("is_active", True),
            "email_verified": data.get("email_verified", False),
        }

        created_user = await self.create(create_data)
        logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
        return created_user

    async def get_by_email(self, email: str) -> Optional[User]:
        try:
            normalized_email = email.lower().strip()
            result = await self.db.execute(select(User).where(User.email == normalized_email))
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get user by email {email}: {e}")
            raise

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Returns:
            User if the credentials match an active account, None otherwise
        """
        user = await self.get_by_email(email)

        if not user:
            logger.debug(f"Authentication failed: user {email} not found")
            return None

        if not user.is_active:
            logger.debug(f"Authentication failed: user {email} is inactive")
            return None

        if not user.verify_password(password):
            logger.debug(f"Authentication failed: invalid password for {email}")
            return None

        return user

    async def update_password(self, user: User, new_password: str) -> User:
        hashed_password = User.hash_password(new_password)
        updated_user = await self.update(user, {"hashed_password": hashed_password})
        logger.info(f"Password updated for user: {updated_user.email}")
        return updated_user

    async def mark_email_verified(self, user: User) -> User:
        return await self.update(user, {"email_verified": True})


class LandlordRepository(BaseRepository[Landlord]):
    """Repository for landlord accounts."""

    def __init__(self, db: AsyncSession):
        super().__init__(Landlord, db)

    async def get_by_user_id(self, user_id: uuid.UUID) -> Optional[Landlord]:
        return await self.get_by_field("user_id", user_id)

    async def get_by_email(self, email: str) -> Optional[Landlord]:
        query = (
            select(Landlord)
            .join(User, Landlord.user_id == User.id)
            .where(User.email == email.lower().strip())
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_stripe_customer(self, customer_id: str) -> Optional[Landlord]:
        return await self.get_by_field("stripe_customer_id", customer_id)

    async def get_by_stripe_subscription(self, subscription_id: str) -> Optional[Landlord]:
        return await self.get_by_field("stripe_subscription_id", subscription_id)

    async def get_by_verification_reference(self, reference: str) -> Optional[Landlord]:
        return await self.get_by_field("verification_reference", reference)

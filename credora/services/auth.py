"""
Authentication service for registration, login, token management and
password/email flows.
"""

from typing import Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from credora.config import settings
from credora.repositories.user import UserRepository, LandlordRepository
from credora.models.user import User, UserRole
from credora.schemas.auth import RegisterRequest
from credora.services.email import EmailService
from credora.utils.auth import (
    create_access_token,
    create_refresh_token,
    create_email_verification_token,
    create_password_reset_token,
    decode_token,
    verify_token,
    ACCESS_TOKEN,
    REFRESH_TOKEN,
    EMAIL_VERIFICATION_TOKEN,
    PASSWORD_RESET_TOKEN,
    TokenPayload,
)
from credora.utils.exceptions import (
    APIException,
    BadRequestError,
    DuplicateResourceError,
    EmailNotVerifiedError,
    InactiveUserError,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    ValidationError,
)
from jose import JWTError
import uuid
import logging

logger = logging.getLogger(__name__)


def _token_error(e: JWTError) -> APIException:
    if "expired" in str(e).lower():
        return TokenExpiredError()
    return InvalidTokenError(str(e))


class AuthService:
    """
    Account service: registration, authentication, JWT issuance and the
    email verification and password reset flows.
    """

    def __init__(self, db_session: AsyncSession, email_service: EmailService = None):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.landlord_repo = LandlordRepository(db_session)
        self.email_service = email_service or EmailService()

    async def register(self, data: RegisterRequest) -> User:
        """
        Register a tenant or landlord account.

        Landlord registrations also create the landlord profile. A
        verification email is sent; delivery failures are logged only.

        Raises:
            DuplicateResourceError: If the email is already registered
            ValidationError: If the password or email is rejected
        """
        try:
            if await self.user_repo.get_by_email(data.email):
                raise DuplicateResourceError("User", data.email)

            user = await self.user_repo.create_user({
                "email": data.email,
                "password": data.password,
                "first_name": data.first_name,
                "last_name": data.last_name,
                "phone": data.phone,
                "role": data.role,
                "email_verified": not settings.require_email_verification,
            })

            if user.role == UserRole.LANDLORD:
                try:
                    await self.landlord_repo.create({
                        "user_id": user.id,
                        "company_name": data.company_name,
                        "phone": data.phone,
                    })
                except Exception:
                    # Each repository write commits, so undo the user row by hand
                    await self.user_repo.delete(user.id)
                    raise
                await self.db.refresh(user)

            logger.info(f"Registered {user.role.value} account: {user.email}")
        except APIException:
            raise
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Registration failed for {data.email}: {e}")
            raise BadRequestError(f"Failed to register: {str(e)}")

        if settings.require_email_verification:
            await self._send_verification(user)

        return user

    async def _send_verification(self, user: User) -> None:
        token = create_email_verification_token(user.id, user.email)
        try:
            await self.email_service.send_email_verification(user.email, user.first_name, token)
        except APIException as e:
            logger.warning(f"Verification email to {user.email} failed: {e.detail}")

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Authenticate user with email and password.

        Raises:
            InvalidCredentialsError: Unknown email, wrong password or inactive account
            EmailNotVerifiedError: Email not yet confirmed while verification is required
        """
        try:
            if not email or not email.strip() or not password:
                raise InvalidCredentialsError()

            user = await self.user_repo.authenticate_user(email, password)

            if not user:
                logger.warning(f"Failed authentication attempt for email: {email}")
                raise InvalidCredentialsError()

            if settings.require_email_verification and not user.email_verified:
                raise EmailNotVerifiedError()

            logger.info(f"User authenticated successfully: {user.email}")
            return user
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Authentication error for {email}: {e}")
            raise InvalidCredentialsError()

    def create_tokens(self, user: User) -> Tuple[str, str]:
        access_token = create_access_token(user_id=user.id, email=user.email, role=user.role)
        refresh_token = create_refresh_token(user_id=user.id, email=user.email)
        return access_token, refresh_token

    async def login(self, email: str, password: str) -> Tuple[User, str, str]:
        """
        Authenticate user and create tokens.

        Returns:
            Tuple of (user, access_token, refresh_token)
        """
        user = await self.authenticate_user(email, password)
        access_token, refresh_token = self.create_tokens(user)
        return user, access_token, refresh_token

    async def _user_from_token(self, token: str, token_type: str) -> Tuple[User, TokenPayload]:
        try:
            payload = verify_token(token, token_type=token_type)
        except JWTError as e:
            raise _token_error(e)

        try:
            user_id = uuid.UUID(payload.user_id)
        except ValueError:
            raise InvalidTokenError("Invalid token subject")

        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise InvalidTokenError("User no longer exists")
        if not user.is_active:
            raise InactiveUserError()
        return user, payload

    async def refresh_access_token(self, refresh_token: str) -> str:
        user, _ = await self._user_from_token(refresh_token, REFRESH_TOKEN)
        return create_access_token(user_id=user.id, email=user.email, role=user.role)

    async def get_current_user(self, token: str) -> User:
        """
        Get current user from access token.

        Raises:
            InvalidTokenError: If token is invalid or its user is gone
            TokenExpiredError: If token is expired
            InactiveUserError: If user account is inactive
        """
        user, _ = await self._user_from_token(token, ACCESS_TOKEN)
        return user

    async def verify_email(self, token: str) -> User:
        user, payload = await self._user_from_token(token, EMAIL_VERIFICATION_TOKEN)

        if payload.email != user.email:
            raise InvalidTokenError("Verification link is no longer valid")

        if not user.email_verified:
            user = await self.user_repo.mark_email_verified(user)
            logger.info(f"Email verified for {user.email}")
        return user

    async def change_password(self, user: User, current_password: str, new_password: str) -> User:
        if not user.verify_password(current_password):
            raise InvalidCredentialsError("Current password is incorrect")
        if current_password == new_password:
            raise BadRequestError("New password must be different from the current password")

        try:
            return await self.user_repo.update_password(user, new_password)
        except ValueError as e:
            raise ValidationError(str(e))

    async def request_password_reset(self, email: str) -> None:
        """
        Email a reset link when the account exists.

        Always returns normally so callers cannot tell which emails are registered.
        """
        user = await self.user_repo.get_by_email(email)
        if not user or not user.is_active:
            logger.info(f"Password reset requested for unknown or inactive email: {email}")
            return

        token = create_password_reset_token(user.id, user.email, user.hashed_password)
        try:
            await self.email_service.send_password_reset(user.email, user.first_name, token)
        except APIException as e:
            logger.warning(f"Password reset email to {user.email} failed: {e.detail}")

    async def reset_password(self, token: str, new_password: str) -> User:
        user, payload = await self._user_from_token(token, PASSWORD_RESET_TOKEN)

        # Tokens are bound to the password hash they were issued against
        fingerprint = decode_token(token).get("pwd")
        if fingerprint != user.hashed_password[-12:] or payload.email != user.email:
            raise InvalidTokenError("Reset link has already been used")

        try:
            user = await self.user_repo.update_password(user, new_password)
        except ValueError as e:
            raise ValidationError(str(e))

        logger.info(f"Password reset completed for {user.email}")
        return user

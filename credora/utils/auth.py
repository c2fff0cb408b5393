"""
Authentication utilities for JWT token management.
Provides access/refresh tokens and single-purpose tokens for email
verification and password reset.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from credora.config import settings
from credora.models.user import UserRole
import uuid

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"
EMAIL_VERIFICATION_TOKEN = "email_verification"
PASSWORD_RESET_TOKEN = "password_reset"


class TokenPayload:
    """JWT token payload structure."""

    def __init__(self, user_id: str, email: str, role: Optional[str], exp: datetime, token_type: str):
        self.user_id = user_id
        self.email = email
        self.role = role
        self.exp = exp
        self.token_type = token_type

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPayload":
        return cls(
            user_id=data["sub"],
            email=data["email"],
            role=data.get("role"),
            exp=datetime.fromtimestamp(data["exp"], tz=timezone.utc),
            token_type=data["type"]
        )


def _encode(claims: Dict[str, Any], expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = {**claims, "iat": now, "exp": now + expires_delta}
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    role: UserRole,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create JWT access token with user claims.

    Args:
        user_id: User's UUID
        email: User's email address
        role: User's role
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    return _encode(
        {"sub": str(user_id), "email": email, "role": role.value, "type": ACCESS_TOKEN},
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )


def create_refresh_token(
    user_id: uuid.UUID,
    email: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    return _encode(
        {"sub": str(user_id), "email": email, "type": REFRESH_TOKEN},
        expires_delta or timedelta(days=settings.jwt_refresh_token_expire_days)
    )


def create_email_verification_token(user_id: uuid.UUID, email: str) -> str:
    return _encode(
        {"sub": str(user_id), "email": email, "type": EMAIL_VERIFICATION_TOKEN},
        timedelta(hours=settings.email_token_expire_hours)
    )


def create_password_reset_token(user_id: uuid.UUID, email: str, password_hash: str) -> str:
    """
    Create a password reset token.

    The token embeds a fragment of the current password hash so it stops
    working once the password has been changed.
    """
    return _encode(
        {"sub": str(user_id), "email": email, "type": PASSWORD_RESET_TOKEN, "pwd": password_hash[-12:]},
        timedelta(minutes=settings.password_reset_expire_minutes)
    )


def decode_token(token: str) -> Dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])


def verify_token(token: str, token_type: str = ACCESS_TOKEN) -> TokenPayload:
    """
    Verify and decode JWT token.

    Args:
        token: JWT token string
        token_type: Expected value of the ``type`` claim

    Returns:
        TokenPayload for a valid token

    Raises:
        JWTError: If the token is invalid, expired or of the wrong type
    """
    try:
        payload = decode_token(token)
    except JWTError:
        raise
    except Exception as e:
        raise JWTError(f"Token validation error: {str(e)}")

    if payload.get("type") != token_type:
        raise JWTError(f"Invalid token type. Expected {token_type}")

    if not payload.get("sub") or not payload.get("email"):
        raise JWTError("Invalid token payload")

    return TokenPayload.from_dict(payload)

"""
Authentication API endpoints for registration, login, token management and
the email verification and password reset flows.
"""

from fastapi import APIRouter, Depends, status
from credora.models.user import User
from credora.services.auth import AuthService
from credora.schemas.auth import (
    AccessTokenResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshTokenRequest,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    VerifyEmailRequest,
)
from credora.schemas.error import get_auth_error_responses, get_common_error_responses
from credora.schemas.user import UserResponse
from credora.utils.dependencies import get_auth_service, get_current_active_user
from credora.utils.exceptions import APIException, InvalidCredentialsError
from credora.config import settings
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register an account",
    description="Create a tenant or landlord account. Landlord accounts also get a landlord profile.",
    responses=get_common_error_responses(),
)
async def register(
    data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> RegisterResponse:
    user = await auth_service.register(data)

    if settings.require_email_verification:
        message = "Registration successful. Please check your email to verify your account."
    else:
        message = "Registration successful."

    return RegisterResponse(user=UserResponse.model_validate(user), message=message)


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="User login",
    description="Authenticate user with email and password, returns JWT tokens",
    responses=get_auth_error_responses(),
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> LoginResponse:
    """
    Authenticate user and return JWT tokens.

    Raises:
        InvalidCredentialsError: If credentials are invalid
        EmailNotVerifiedError: If the email address is not confirmed
    """
    try:
        user, access_token, refresh_token = await auth_service.login(
            email=login_data.email,
            password=login_data.password
        )
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Login failed unexpectedly for {login_data.email}: {e}")
        raise InvalidCredentialsError()

    return LoginResponse(
        user=UserResponse.model_validate(user),
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Refresh access token",
    description="Generate new access token using refresh token",
    responses=get_auth_error_responses(),
)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AccessTokenResponse:
    access_token = await auth_service.refresh_access_token(refresh_data.refresh_token)
    return AccessTokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
    responses=get_auth_error_responses(),
)
async def get_current_user_info(
    current_user: User = Depends(get_current_active_user)
) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.post(
    "/verify-email",
    response_model=UserResponse,
    summary="Confirm an email address",
    responses=get_auth_error_responses(),
)
async def verify_email(
    data: VerifyEmailRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    user = await auth_service.verify_email(data.token)
    return UserResponse.model_validate(user)


@router.post(
    "/change-password",
    response_model=MessageResponse,
    summary="Change password",
    responses=get_auth_error_responses(),
)
async def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_active_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth_service.change_password(current_user, data.current_password, data.new_password)
    return MessageResponse(message="Password updated successfully")


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    summary="Request a password reset email",
    description="Always succeeds so the response does not reveal which emails are registered.",
)
async def forgot_password(
    data: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth_service.request_password_reset(data.email)
    return MessageResponse(message="If an account exists for that email, a reset link has been sent")


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Reset password with a reset token",
    responses=get_auth_error_responses(),
)
async def reset_password(
    data: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth_service.reset_password(data.token, data.new_password)
    return MessageResponse(message="Password has been reset. You can now sign in.")

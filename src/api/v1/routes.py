"""
API v1 routes.

Defines REST endpoints for OTP-gated registration, login and password reset.
Domain exceptions propagate to the handlers in src.api.errors, which turn
them into the standard error envelope.

Path operations are plain functions: the repository and SMTP sender block,
so FastAPI runs them in its threadpool.
"""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_current_user, get_identity_service
from src.api.models import (
    AuthData,
    DataResponse,
    ErrorResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileData,
    RegisterInitiateRequest,
    RegisterVerifyRequest,
    ResetPasswordRequest,
    UserProfile,
)
from src.domain.identity import AuthSession, IdentityService, LoginOutcome, RegistrationOutcome
from src.domain.ports import User

router = APIRouter(prefix="/auth", tags=["v1"])

_ERROR_400 = {400: {"model": ErrorResponse, "description": "Validation error or rejected request"}}
_ERROR_401 = {401: {"model": ErrorResponse, "description": "Invalid credentials or token"}}
_ERROR_404 = {404: {"model": ErrorResponse, "description": "User not found"}}
_ERROR_500 = {500: {"model": ErrorResponse, "description": "Email delivery or internal failure"}}


def _auth_data(session: AuthSession) -> AuthData:
    return AuthData(user=UserProfile.from_user(session.user), token=session.token)


@router.post(
    "/register/initiate",
    response_model=MessageResponse,
    responses={**_ERROR_400, **_ERROR_500},
    summary="Start registration",
    description="Create an unverified account (or reuse a pending one) "
    "and email a 6-digit verification code.",
)
def register_initiate(
    request_data: RegisterInitiateRequest,
    service: IdentityService = Depends(get_identity_service),
) -> MessageResponse:
    """
    Start registration and send a verification code.

    - **fullname**: Display name
    - **email**: Email address to register
    - **password**: Password, kept only when the account is new
    """
    outcome = service.register_initiate(
        request_data.fullname, request_data.email, request_data.password
    )
    if outcome == RegistrationOutcome.CREATED:
        message = "User created and OTP sent to your email. Please verify to complete registration."
    else:
        message = "OTP sent to your email. Please verify to complete registration."
    return MessageResponse(message=message)


@router.post(
    "/register/verify",
    response_model=DataResponse[AuthData],
    status_code=status.HTTP_201_CREATED,
    responses={**_ERROR_400},
    summary="Complete registration with verification code",
)
def register_verify(
    request_data: RegisterVerifyRequest,
    service: IdentityService = Depends(get_identity_service),
) -> DataResponse[AuthData]:
    """Verify the emailed code, activate the account and return a session token."""
    session = service.register_verify(request_data.email, request_data.otp)
    return DataResponse[AuthData](message="User registered successfully", data=_auth_data(session))


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={**_ERROR_400, **_ERROR_401, **_ERROR_404, **_ERROR_500},
    summary="Log in",
    description="Verified accounts get a session token. Unverified accounts "
    "get a fresh verification code instead and no password check is made.",
)
def login(
    request_data: LoginRequest,
    service: IdentityService = Depends(get_identity_service),
) -> LoginResponse:
    result = service.login(request_data.email, request_data.password)
    if result.outcome == LoginOutcome.VERIFICATION_REQUIRED or result.session is None:
        return LoginResponse(
            message="Email not verified. OTP sent to your email. Please verify to login."
        )
    return LoginResponse(message="Login successful", data=_auth_data(result.session))


@router.post(
    "/logout",
    response_model=MessageResponse,
    responses={**_ERROR_401},
    summary="Log out",
)
def logout(_user: User = Depends(get_current_user)) -> MessageResponse:
    """
    Stateless logout.

    Tokens are not stored server-side, so the client simply discards it.
    """
    return MessageResponse(message="Logout successful")


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    responses={**_ERROR_400, **_ERROR_404, **_ERROR_500},
    summary="Request a password reset code",
)
def forgot_password(
    request_data: ForgotPasswordRequest,
    service: IdentityService = Depends(get_identity_service),
) -> MessageResponse:
    service.forgot_password(request_data.email)
    return MessageResponse(message="OTP sent to your email. Please verify to reset your password.")


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={**_ERROR_400},
    summary="Reset password with a reset code",
)
def reset_password(
    request_data: ResetPasswordRequest,
    service: IdentityService = Depends(get_identity_service),
) -> MessageResponse:
    """
    Replace the password after verifying the emailed reset code.

    - **email**: Account email
    - **otp**: 6-digit code from the reset email
    - **newPassword**: New password

    Does not log the user in.
    """
    service.reset_password(request_data.email, request_data.otp, request_data.new_password)
    return MessageResponse(message="Password reset successfully")


@router.get(
    "/me",
    response_model=DataResponse[ProfileData],
    responses={**_ERROR_401},
    summary="Get current user profile",
)
def me(user: User = Depends(get_current_user)) -> DataResponse[ProfileData]:
    return DataResponse[ProfileData](
        message="Profile retrieved", data=ProfileData(user=UserProfile.from_user(user))
    )

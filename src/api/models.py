"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Every response is wrapped in the {status, message, data?} envelope; JSON
field names are camelCase.
"""

from datetime import datetime
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from src.domain.ports import User

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Base model accepting and emitting camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterInitiateRequest(CamelModel):
    """
    Request model for starting registration.

    Only presence is checked here. Length rules apply to new accounts only
    and are enforced by IdentityService.register_initiate.
    """

    fullname: str = Field(..., min_length=1, description="Display name (2-50 characters)")
    email: EmailStr
    password: str = Field(..., min_length=1, description="Password (6-72 characters)")


class RegisterVerifyRequest(CamelModel):
    """Request model for completing registration with a code."""

    email: EmailStr
    otp: str = Field(..., pattern=r"^\d{6}$", description="6-digit one-time code")


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    """Request model for resetting a password with a forgot-password code."""

    email: EmailStr
    otp: str = Field(..., pattern=r"^\d{6}$", description="6-digit one-time code")
    new_password: str = Field(..., min_length=6, max_length=72, description="New password (6-72 characters)")


class UserProfile(CamelModel):
    """Public view of a user. Never includes the password hash or code slot."""

    id: str
    fullname: str
    email: str
    profile_picture: str | None = None
    bio: str | None = None
    is_verified: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserProfile":
        return cls(
            id=user.id,
            fullname=user.fullname,
            email=user.email,
            profile_picture=user.profile_picture,
            bio=user.bio,
            is_verified=user.is_verified,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class AuthData(BaseModel):
    user: UserProfile
    token: str


class ProfileData(BaseModel):
    user: UserProfile


class LoginResponse(BaseModel):
    """
    Envelope for login.

    data is null when the account still needs email verification and a
    code was sent instead of a token.
    """

    status: Literal["success"] = "success"
    message: str
    data: AuthData | None = None


class MessageResponse(BaseModel):
    """Envelope for responses that carry only a message."""

    status: Literal["success"] = "success"
    message: str


class DataResponse(BaseModel, Generic[DataT]):
    """Envelope for responses that carry a data payload."""

    status: Literal["success"] = "success"
    message: str
    data: DataT


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    status: Literal["error"] = "error"
    message: str
    errors: list[dict[str, Any]] | None = None

"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure, together with the value types that cross them.
Adapters implement these protocols.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Protocol


class CodePurpose(str, Enum):
    """Why a one-time code was issued. Must match between issue and verify."""

    REGISTRATION = "registration"
    FORGOT_PASSWORD = "forgot_password"


class VerificationState(str, Enum):
    """
    Identity State Machine states for a single email address.

    State Transitions:
    - UNREGISTERED -> PENDING_VERIFICATION (register-initiate creates the user)
    - PENDING_VERIFICATION -> VERIFIED (register-verify with a valid code)

    PENDING_VERIFICATION can loop on itself: re-registration and login both
    re-issue a registration code. VERIFIED is terminal for this core; account
    deletion happens elsewhere.
    """

    UNREGISTERED = "UNREGISTERED"
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    VERIFIED = "VERIFIED"


@dataclass(frozen=True)
class User:
    """User record as read from the store, including the one-time-code slot."""

    id: str
    fullname: str
    email: str
    password_hash: str
    is_verified: bool
    created_at: datetime
    updated_at: datetime
    profile_picture: str | None = None
    bio: str | None = None
    otp_code: str | None = None
    otp_purpose: CodePurpose | None = None
    otp_expires_at: datetime | None = None
    otp_used: bool = False

    @property
    def state(self) -> VerificationState:
        if self.is_verified:
            return VerificationState.VERIFIED
        return VerificationState.PENDING_VERIFICATION


@dataclass(frozen=True)
class SessionClaims:
    """Verified contents of a session token."""

    user_id: str
    email: str
    issued_at: datetime
    expires_at: datetime


class UserRepository(Protocol):
    """Port interface for user persistence, including the code slot."""

    def find_by_email(self, email: str) -> User | None:
        """Return the user with this normalized email, or None."""
        ...

    def find_by_id(self, user_id: str) -> User | None:
        """Return the user with this id, or None (including malformed ids)."""
        ...

    def create_user(self, fullname: str, email: str, password_hash: str) -> User | None:
        """
        Insert a new unverified user.

        Returns:
            The created user, or None if the email is already taken
            (unique constraint conflict, e.g. a concurrent registration).
        """
        ...

    def store_code(self, email: str, code: str, purpose: CodePurpose, ttl: timedelta) -> bool:
        """
        Overwrite the user's code slot with a fresh, unused code.

        Expiry is computed by the store as now + ttl.

        Returns:
            True if a user was updated, False if no user matches email.
        """
        ...

    def consume_code(self, email: str, code: str, purpose: CodePurpose) -> bool:
        """
        Atomically consume a code if it is current.

        The check and the transition to used happen in one conditional
        update: the stored code and purpose must match, the code must be
        unused and unexpired. Concurrent callers presenting the same code
        observe exactly one True.

        Returns:
            True if this call consumed the code, False otherwise.
        """
        ...

    def mark_verified(self, email: str) -> User | None:
        """Set is_verified and return the updated user (None if absent)."""
        ...

    def update_password(self, email: str, password_hash: str) -> bool:
        """Replace the stored password hash. Returns False if no user matches."""
        ...

    def clear_expired_codes(self) -> int:
        """Reset every code slot whose expiry has passed. Returns rows cleared."""
        ...


class EmailSender(Protocol):
    """Port interface for one-time code delivery."""

    def send_code(self, email: str, code: str, purpose: CodePurpose) -> None:
        """
        Deliver a one-time code to an email address.

        Raises:
            DeliveryFailure: If the outbound channel fails.
        """
        ...


class TokenIssuer(Protocol):
    """Port interface for minting and checking session tokens."""

    def issue(self, user_id: str, email: str) -> str:
        """Return a signed, time-limited token for the user."""
        ...

    def verify(self, token: str) -> SessionClaims:
        """
        Check signature and expiry and return the claims.

        Raises:
            InvalidToken: If the token is tampered with, expired or malformed.
        """
        ...

    def decode(self, token: str) -> dict[str, Any]:
        """Return the payload without verifying it. Never use for authorization."""
        ...

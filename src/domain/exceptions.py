"""
Domain exceptions - Semantic error types for identity and authentication.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
Each exception carries a client-safe default message; the API layer
maps exception classes to HTTP status codes.
"""


class IdentityError(Exception):
    """Base class for identity domain errors."""

    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(IdentityError):
    """Input is malformed or missing required fields."""

    default_message = "Validation failed"


class AlreadyRegistered(IdentityError):
    """Email belongs to an account that has completed verification."""

    default_message = "User already registered"


class InvalidOrExpiredCode(IdentityError):
    """
    Code verification failed.

    Deliberately covers wrong, expired, already-used and wrong-purpose codes
    as well as unknown emails, so callers cannot tell them apart.
    """

    default_message = "Invalid or expired OTP"


class InvalidCredentials(IdentityError):
    """Password does not match the stored hash."""

    default_message = "Invalid email or password"


class UserNotFound(IdentityError):
    """No user matches the given email or id."""

    default_message = "User not found"


class DeliveryFailure(IdentityError):
    """The outbound email channel rejected or failed to deliver a message."""

    default_message = "Failed to send verification code"


class InvalidToken(IdentityError):
    """Session token is missing, malformed, tampered with or expired."""

    default_message = "Invalid or expired token"

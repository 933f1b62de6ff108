"""
Domain layer - Pure business logic with zero framework imports.

This package contains the identity core: the OTP-gated registration,
login and password-reset state machine. It defines its own port
interfaces for infrastructure abstraction, ensuring true hexagonal
architecture decoupling.
"""

from .exceptions import (
    AlreadyRegistered,
    DeliveryFailure,
    IdentityError,
    InvalidCredentials,
    InvalidOrExpiredCode,
    InvalidToken,
    UserNotFound,
    ValidationError,
)
from .identity import AuthSession, IdentityService, LoginOutcome, LoginResult, RegistrationOutcome
from .ports import (
    CodePurpose,
    EmailSender,
    SessionClaims,
    TokenIssuer,
    User,
    UserRepository,
    VerificationState,
)

__all__ = [
    "AlreadyRegistered",
    "AuthSession",
    "CodePurpose",
    "DeliveryFailure",
    "EmailSender",
    "IdentityError",
    "IdentityService",
    "InvalidCredentials",
    "InvalidOrExpiredCode",
    "InvalidToken",
    "LoginOutcome",
    "LoginResult",
    "RegistrationOutcome",
    "SessionClaims",
    "TokenIssuer",
    "User",
    "UserNotFound",
    "UserRepository",
    "ValidationError",
    "VerificationState",
]

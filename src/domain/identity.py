"""
Identity domain service - OTP-gated registration and authentication.

This module contains the Identity State Machine: the business logic that
reconciles fresh registration, re-registration of an unverified account and
login of an unverified account into one consistent lifecycle per user, and
guards password reset with the same one-time code mechanism.

Identity State Machine
======================

States (derived from the user record):
- UNREGISTERED: no user row for the email
- PENDING_VERIFICATION: user row exists, is_verified = false
- VERIFIED: user row exists, is_verified = true

Transitions:
    UNREGISTERED         --register_initiate--> PENDING_VERIFICATION (code sent)
    PENDING_VERIFICATION --register_initiate--> PENDING_VERIFICATION (code re-sent)
    PENDING_VERIFICATION --login------------->  PENDING_VERIFICATION (code re-sent)
    PENDING_VERIFICATION --register_verify--->  VERIFIED (token issued)
    VERIFIED             --login------------->  VERIFIED (token issued)

Rejected:
    VERIFIED --register_initiate--> AlreadyRegistered

Password reset (forgot_password + reset_password) is orthogonal to the
verification state: it only replaces the password hash.

Every issuance overwrites the user's single code slot, so only the newest
code can verify.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum

from .codes import generate_code
from .exceptions import (
    AlreadyRegistered,
    InvalidCredentials,
    InvalidOrExpiredCode,
    InvalidToken,
    UserNotFound,
    ValidationError,
)
from .passwords import PasswordHasher
from .ports import CodePurpose, EmailSender, TokenIssuer, User, UserRepository
from .verification import CodeVerifier, normalize_email

logger = logging.getLogger(__name__)

FULLNAME_MIN_LENGTH = 2
FULLNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6


def _check_new_account(fullname: str, password: str) -> None:
    if not FULLNAME_MIN_LENGTH <= len(fullname) <= FULLNAME_MAX_LENGTH:
        raise ValidationError(
            f"Fullname must be {FULLNAME_MIN_LENGTH}-{FULLNAME_MAX_LENGTH} characters"
        )
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")


class RegistrationOutcome(Enum):
    """Result of a successful register_initiate call."""

    CREATED = "created"
    CODE_RESENT = "code_resent"


class LoginOutcome(Enum):
    """Result of a successful login call."""

    AUTHENTICATED = "authenticated"
    VERIFICATION_REQUIRED = "verification_required"


@dataclass(frozen=True)
class AuthSession:
    """An authenticated user together with a freshly minted session token."""

    user: User
    token: str


@dataclass(frozen=True)
class LoginResult:
    outcome: LoginOutcome
    session: AuthSession | None = None


@dataclass
class IdentityService:
    """
    Domain service orchestrating the identity lifecycle.

    Collaborators are injected so the store, the email channel and the
    token format can be swapped for test doubles.
    """

    repository: UserRepository
    email_sender: EmailSender
    token_issuer: TokenIssuer
    hasher: PasswordHasher = field(default_factory=PasswordHasher)
    code_ttl: timedelta = timedelta(minutes=10)

    def __post_init__(self) -> None:
        self.verifier = CodeVerifier(self.repository)

    def register_initiate(self, fullname: str, email: str, password: str) -> RegistrationOutcome:
        """
        Start registration for an email address.

        - Unknown email: create an unverified user and send a registration code.
        - Unverified user: send a fresh registration code. The stored password
          is kept; the password supplied here is ignored.
        - Verified user: rejected.

        Raises:
            ValidationError: If a required field is empty, or a new account
                has a fullname outside 2-50 characters or a password shorter
                than 6 characters or longer than 72 bytes
            AlreadyRegistered: If the account is already verified
            DeliveryFailure: If the code could not be sent
        """
        fullname = fullname.strip()
        normalized_email = normalize_email(email)
        if not fullname or not normalized_email or not password:
            raise ValidationError("Fullname, email, and password are required")

        existing = self.repository.find_by_email(normalized_email)
        if existing is None:
            _check_new_account(fullname, password)
            password_hash = self.hasher.hash(password)
            created = self.repository.create_user(fullname, normalized_email, password_hash)
            if created is not None:
                logger.info("Created unverified user %s", created.id)
                self._issue_and_send(normalized_email, CodePurpose.REGISTRATION)
                return RegistrationOutcome.CREATED
            # Lost a concurrent registration race; continue as the existing user
            existing = self.repository.find_by_email(normalized_email)
            if existing is None:
                raise UserNotFound()

        if existing.is_verified:
            raise AlreadyRegistered()

        logger.info("Re-sending registration code to unverified user %s", existing.id)
        self._issue_and_send(normalized_email, CodePurpose.REGISTRATION)
        return RegistrationOutcome.CODE_RESENT

    def register_verify(self, email: str, code: str) -> AuthSession:
        """
        Complete registration with a registration-purpose code.

        Raises:
            InvalidOrExpiredCode: For any verification failure
        """
        normalized_email = normalize_email(email)
        if not self.verifier.verify(normalized_email, code, CodePurpose.REGISTRATION):
            raise InvalidOrExpiredCode()

        user = self.repository.mark_verified(normalized_email)
        if user is None:
            raise InvalidOrExpiredCode()

        logger.info("User %s verified", user.id)
        return self._open_session(user)

    def login(self, email: str, password: str) -> LoginResult:
        """
        Authenticate by email and password.

        Unverified accounts never reach password comparison: they get a new
        registration code instead, whatever password was supplied.

        Raises:
            UserNotFound: If no user has this email
            InvalidCredentials: If the password is wrong for a verified user
            DeliveryFailure: If a verification code could not be sent
        """
        normalized_email = normalize_email(email)
        user = self.repository.find_by_email(normalized_email)
        if user is None:
            raise UserNotFound()

        if not user.is_verified:
            logger.info("Login for unverified user %s, sending registration code", user.id)
            self._issue_and_send(normalized_email, CodePurpose.REGISTRATION)
            return LoginResult(outcome=LoginOutcome.VERIFICATION_REQUIRED)

        if not self.hasher.verify(password, user.password_hash):
            logger.info("Login failed for user %s: bad password", user.id)
            raise InvalidCredentials()

        logger.info("Login succeeded for user %s", user.id)
        return LoginResult(outcome=LoginOutcome.AUTHENTICATED, session=self._open_session(user))

    def forgot_password(self, email: str) -> None:
        """
        Send a password-reset code.

        Raises:
            UserNotFound: If no user has this email
            DeliveryFailure: If the code could not be sent
        """
        normalized_email = normalize_email(email)
        if self.repository.find_by_email(normalized_email) is None:
            raise UserNotFound()
        self._issue_and_send(normalized_email, CodePurpose.FORGOT_PASSWORD)

    def reset_password(self, email: str, code: str, new_password: str) -> None:
        """
        Replace the password after verifying a forgot-password code.

        Does not log the user in.

        Raises:
            ValidationError: If the new password is empty or too long
            InvalidOrExpiredCode: For any verification failure
        """
        if not new_password:
            raise ValidationError("New password is required")
        # Hash first so an over-long password does not burn the code
        password_hash = self.hasher.hash(new_password)

        normalized_email = normalize_email(email)
        if not self.verifier.verify(normalized_email, code, CodePurpose.FORGOT_PASSWORD):
            raise InvalidOrExpiredCode()

        if not self.repository.update_password(normalized_email, password_hash):
            raise UserNotFound()
        logger.info("Password reset for %s", normalized_email)

    def authenticate(self, token: str) -> User:
        """
        Resolve a session token to its user.

        Raises:
            InvalidToken: If the token fails verification or its user is gone
        """
        claims = self.token_issuer.verify(token)
        user = self.repository.find_by_id(claims.user_id)
        if user is None:
            raise InvalidToken()
        return user

    def _issue_and_send(self, email: str, purpose: CodePurpose) -> None:
        """
        Store a fresh code for the user and deliver it.

        The code is persisted before sending. If delivery fails the stored
        code stays in place and the DeliveryFailure propagates; requesting
        again simply overwrites it.
        """
        code = generate_code()
        if not self.repository.store_code(email, code, purpose, self.code_ttl):
            raise UserNotFound()
        self.email_sender.send_code(email, code, purpose)

    def _open_session(self, user: User) -> AuthSession:
        return AuthSession(user=user, token=self.token_issuer.issue(user.id, user.email))

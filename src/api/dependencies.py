"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresUserRepository
from src.adapters.smtp.console import ConsoleEmailSender
from src.adapters.smtp.sender import SmtpEmailSender
from src.adapters.tokens.jwt_issuer import JwtTokenIssuer
from src.config.settings import get_settings
from src.domain.exceptions import InvalidToken
from src.domain.identity import IdentityService
from src.domain.passwords import PasswordHasher
from src.domain.ports import EmailSender, User


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_repository(request: Request) -> PostgresUserRepository:
    """Create repository with connection pool from app state."""
    pool = get_pool(request)
    return PostgresUserRepository(pool)


def get_email_sender() -> EmailSender:
    """Build the configured email sender (SMTP, or console for development)."""
    settings = get_settings()
    if settings.email_backend == "console":
        return ConsoleEmailSender()
    return SmtpEmailSender(
        host=settings.smtp_host,
        port=settings.smtp_port,
        from_address=settings.smtp_from,
        username=settings.smtp_user,
        password=settings.smtp_password.get_secret_value() if settings.smtp_password else None,
        secure=settings.smtp_secure,
        timeout=settings.smtp_timeout_seconds,
        ttl_minutes=settings.otp_ttl_minutes,
    )


def get_token_issuer() -> JwtTokenIssuer:
    settings = get_settings()
    return JwtTokenIssuer(
        secret=settings.jwt_secret.get_secret_value(),
        expires_in=settings.jwt_expires_in,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
    )


def get_identity_service(request: Request) -> IdentityService:
    """
    Create identity service with injected dependencies.

    Wires together the repository, email sender, token issuer and
    password hasher for the domain service.
    """
    settings = get_settings()
    return IdentityService(
        repository=get_repository(request),
        email_sender=get_email_sender(),
        token_issuer=get_token_issuer(),
        hasher=PasswordHasher(rounds=settings.bcrypt_cost),
        code_ttl=settings.otp_ttl,
    )


# Bearer token security scheme for OpenAPI documentation.
# auto_error=False so a missing header goes through our own 401 envelope.
http_bearer = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    service: IdentityService = Depends(get_identity_service),
) -> User:
    """
    Resolve the Authorization: Bearer token to the current user.

    Raises:
        InvalidToken: If the header is missing or the token does not verify
    """
    if credentials is None:
        raise InvalidToken("Access token required")
    return service.authenticate(credentials.credentials)

"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory repository and email sender doubles
- A real JWT token issuer with a test secret
- An IdentityService wired from the above
"""

from datetime import timedelta

import pytest

from src.adapters.tokens.jwt_issuer import JwtTokenIssuer
from src.domain.identity import IdentityService
from src.domain.passwords import PasswordHasher
from tests.fakes import FakeClock, InMemoryUserRepository, RecordingEmailSender

TEST_JWT_SECRET = "test-signing-secret-that-is-long-enough-for-hs256"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository(clock: FakeClock) -> InMemoryUserRepository:
    return InMemoryUserRepository(clock)


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def hasher() -> PasswordHasher:
    """Minimum bcrypt cost keeps the suite fast."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_issuer() -> JwtTokenIssuer:
    return JwtTokenIssuer(secret=TEST_JWT_SECRET)


@pytest.fixture
def service(
    repository: InMemoryUserRepository,
    email_sender: RecordingEmailSender,
    token_issuer: JwtTokenIssuer,
    hasher: PasswordHasher,
) -> IdentityService:
    return IdentityService(
        repository=repository,
        email_sender=email_sender,
        token_issuer=token_issuer,
        hasher=hasher,
        code_ttl=timedelta(minutes=10),
    )

"""
Unit tests for API v1 routes.

Tests endpoint responses and error envelopes with a mocked IdentityService.
"""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.dependencies import get_current_user, get_identity_service
from src.api.errors import register_exception_handlers
from src.api.v1.routes import router
from src.domain.exceptions import (
    AlreadyRegistered,
    DeliveryFailure,
    InvalidCredentials,
    InvalidOrExpiredCode,
    InvalidToken,
    UserNotFound,
    ValidationError,
)
from src.domain.identity import (
    AuthSession,
    IdentityService,
    LoginOutcome,
    LoginResult,
    RegistrationOutcome,
)
from src.domain.ports import User

NOW = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)

USER = User(
    id="7b0c6a5e-2b0e-4a0c-9a55-8f6d3c2b1a00",
    fullname="Test User",
    email="user@example.com",
    password_hash="$2b$10$secrethash",
    is_verified=True,
    created_at=NOW,
    updated_at=NOW,
    bio="hello",
    otp_code="123456",
)

EXPECTED_PROFILE = {
    "id": USER.id,
    "fullname": "Test User",
    "email": "user@example.com",
    "profilePicture": None,
    "bio": "hello",
    "isVerified": True,
    "createdAt": "2026-03-01T09:30:00Z",
    "updatedAt": "2026-03-01T09:30:00Z",
}


@pytest.fixture
def mock_service() -> MagicMock:
    return MagicMock(spec=IdentityService)


@pytest.fixture
def app(mock_service: MagicMock) -> FastAPI:
    """Create test FastAPI application with the service overridden."""
    test_app = FastAPI()
    register_exception_handlers(test_app)
    test_app.include_router(router, prefix="/v1")
    test_app.state.pool = MagicMock()
    test_app.dependency_overrides[get_identity_service] = lambda: mock_service
    return test_app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def authed_client(app: FastAPI) -> TestClient:
    app.dependency_overrides[get_current_user] = lambda: USER
    return TestClient(app)


class TestRegisterInitiateEndpoint:
    """Tests for POST /v1/auth/register/initiate."""

    body = {"fullname": "Test User", "email": "user@example.com", "password": "Secret123"}

    def test_new_user_returns_200(self, client: TestClient, mock_service: MagicMock) -> None:
        mock_service.register_initiate.return_value = RegistrationOutcome.CREATED

        response = client.post("/v1/auth/register/initiate", json=self.body)

        assert response.status_code == 200
        assert response.json() == {
            "status": "success",
            "message": "User created and OTP sent to your email. Please verify to complete registration.",
        }
        mock_service.register_initiate.assert_called_once_with(
            "Test User", "user@example.com", "Secret123"
        )

    def test_pending_user_returns_200(self, client: TestClient, mock_service: MagicMock) -> None:
        mock_service.register_initiate.return_value = RegistrationOutcome.CODE_RESENT

        response = client.post("/v1/auth/register/initiate", json=self.body)

        assert response.status_code == 200
        assert response.json()["message"] == (
            "OTP sent to your email. Please verify to complete registration."
        )

    def test_already_registered_returns_400(
        self, client: TestClient, mock_service: MagicMock
    ) -> None:
        mock_service.register_initiate.side_effect = AlreadyRegistered()

        response = client.post("/v1/auth/register/initiate", json=self.body)

        assert response.status_code == 400
        assert response.json() == {"status": "error", "message": "User already registered"}

    def test_delivery_failure_returns_500(
        self, client: TestClient, mock_service: MagicMock
    ) -> None:
        mock_service.register_initiate.side_effect = DeliveryFailure()

        response = client.post("/v1/auth/register/initiate", json=self.body)

        assert response.status_code == 500
        assert response.json() == {
            "status": "error",
            "message": "Failed to send verification code",
        }

    @pytest.mark.parametrize("missing", ["fullname", "email", "password"])
    def test_missing_field_returns_400(
        self, client: TestClient, mock_service: MagicMock, missing: str
    ) -> None:
        body = {k: v for k, v in self.body.items() if k != missing}

        response = client.post("/v1/auth/register/initiate", json=body)

        assert response.status_code == 400
        payload = response.json()
        assert payload["status"] == "error"
        assert payload["message"] == "Validation failed"
        assert any(missing in e["loc"] for e in payload["errors"])
        mock_service.register_initiate.assert_not_called()

    def test_invalid_email_returns_400(self, client: TestClient) -> None:
        response = client.post(
            "/v1/auth/register/initiate", json={**self.body, "email": "not-an-email"}
        )
        assert response.status_code == 400

    def test_short_password_reaches_service(
        self, client: TestClient, mock_service: MagicMock
    ) -> None:
        """Length rules are decided by the service, which knows the account state."""
        mock_service.register_initiate.side_effect = ValidationError(
            "Password must be at least 6 characters"
        )

        response = client.post("/v1/auth/register/initiate", json={**self.body, "password": "abc"})

        assert response.status_code == 400
        assert response.json()["message"] == "Password must be at least 6 characters"
        mock_service.register_initiate.assert_called_once_with("Test User", "user@example.com", "abc")


class TestRegisterVerifyEndpoint:
    """Tests for POST /v1/auth/register/verify."""

    def test_success_returns_201_with_user_and_token(
        self, client: TestClient, mock_service: MagicMock
    ) -> None:
        mock_service.register_verify.return_value = AuthSession(user=USER, token="jwt-token")

        response = client.post(
            "/v1/auth/register/verify", json={"email": "user@example.com", "otp": "123456"}
        )

        assert response.status_code == 201
        assert response.json() == {
            "status": "success",
            "message": "User registered successfully",
            "data": {"user": EXPECTED_PROFILE, "token": "jwt-token"},
        }
        mock_service.register_verify.assert_called_once_with("user@example.com", "123456")

    def test_profile_never_leaks_secrets(
        self, client: TestClient, mock_service: MagicMock
    ) -> None:
        mock_service.register_verify.return_value = AuthSession(user=USER, token="jwt-token")

        response = client.post(
            "/v1/auth/register/verify", json={"email": "user@example.com", "otp": "123456"}
        )

        assert "secrethash" not in response.text
        assert "passwordHash" not in response.text
        assert "otp" not in response.json()["data"]["user"]

    def test_invalid_code_returns_generic_400(
        self, client: TestClient, mock_service: MagicMock
    ) -> None:
        mock_service.register_verify.side_effect = InvalidOrExpiredCode()

        response = client.post(
            "/v1/auth/register/verify", json={"email": "user@example.com", "otp": "123456"}
        )

        assert response.status_code == 400
        assert response.json() == {"status": "error", "message": "Invalid or expired OTP"}

    @pytest.mark.parametrize("otp", ["12345", "1234567", "abcdef", ""])
    def test_malformed_otp_returns_400(self, client: TestClient, otp: str) -> None:
        response = client.post(
            "/v1/auth/register/verify", json={"email": "user@example.com", "otp": otp}
        )
        assert response.status_code == 400


class TestLoginEndpoint:
    """Tests for POST /v1/auth/login."""

    body = {"email": "user@example.com", "password": "Secret123"}

    def test_authenticated(self, client: TestClient, mock_service: MagicMock) -> None:
        mock_service.login.return_value = LoginResult(
            outcome=LoginOutcome.AUTHENTICATED,
            session=AuthSession(user=USER, token="jwt-token"),
        )

        response = client.post("/v1/auth/login", json=self.body)

        assert response.status_code == 200
        assert response.json() == {
            "status": "success",
            "message": "Login successful",
            "data": {"user": EXPECTED_PROFILE, "token": "jwt-token"},
        }

    def test_verification_required(self, client: TestClient, mock_service: MagicMock) -> None:
        mock_service.login.return_value = LoginResult(outcome=LoginOutcome.VERIFICATION_REQUIRED)

        response = client.post("/v1/auth/login", json=self.body)

        assert response.status_code == 200
        payload = response.json()
        assert payload["status"] == "success"
        assert payload["message"] == (
            "Email not verified. OTP sent to your email. Please verify to login."
        )
        assert payload["data"] is None

    def test_unknown_user_returns_404(self, client: TestClient, mock_service: MagicMock) -> None:
        mock_service.login.side_effect = UserNotFound()

        response = client.post("/v1/auth/login", json=self.body)

        assert response.status_code == 404
        assert response.json() == {"status": "error", "message": "User not found"}

    def test_wrong_password_returns_401(self, client: TestClient, mock_service: MagicMock) -> None:
        mock_service.login.side_effect = InvalidCredentials()

        response = client.post("/v1/auth/login", json=self.body)

        assert response.status_code == 401
        assert response.json() == {"status": "error", "message": "Invalid email or password"}

    def test_empty_password_returns_400(self, client: TestClient) -> None:
        response = client.post("/v1/auth/login", json={"email": "user@example.com", "password": ""})
        assert response.status_code == 400


class TestLogoutEndpoint:
    def test_logout_with_token(self, authed_client: TestClient) -> None:
        response = authed_client.post("/v1/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"status": "success", "message": "Logout successful"}

    def test_logout_without_token_returns_401(self, client: TestClient) -> None:
        response = client.post("/v1/auth/logout")

        assert response.status_code == 401
        assert response.json() == {"status": "error", "message": "Access token required"}


class TestForgotPasswordEndpoint:
    def test_success(self, client: TestClient, mock_service: MagicMock) -> None:
        response = client.post("/v1/auth/forgot-password", json={"email": "user@example.com"})

        assert response.status_code == 200
        assert response.json()["status"] == "success"
        mock_service.forgot_password.assert_called_once_with("user@example.com")

    def test_unknown_email_returns_404(self, client: TestClient, mock_service: MagicMock) -> None:
        mock_service.forgot_password.side_effect = UserNotFound()

        response = client.post("/v1/auth/forgot-password", json={"email": "nobody@example.com"})

        assert response.status_code == 404

    def test_missing_email_returns_400(self, client: TestClient) -> None:
        response = client.post("/v1/auth/forgot-password", json={})
        assert response.status_code == 400


class TestResetPasswordEndpoint:
    body = {"email": "user@example.com", "otp": "123456", "newPassword": "BrandNew456"}

    def test_success(self, client: TestClient, mock_service: MagicMock) -> None:
        response = client.post("/v1/auth/reset-password", json=self.body)

        assert response.status_code == 200
        assert response.json() == {"status": "success", "message": "Password reset successfully"}
        mock_service.reset_password.assert_called_once_with(
            "user@example.com", "123456", "BrandNew456"
        )

    def test_accepts_snake_case_field(self, client: TestClient, mock_service: MagicMock) -> None:
        body = {"email": "user@example.com", "otp": "123456", "new_password": "BrandNew456"}

        response = client.post("/v1/auth/reset-password", json=body)

        assert response.status_code == 200

    def test_invalid_code_returns_400(self, client: TestClient, mock_service: MagicMock) -> None:
        mock_service.reset_password.side_effect = InvalidOrExpiredCode()

        response = client.post("/v1/auth/reset-password", json=self.body)

        assert response.status_code == 400
        assert response.json() == {"status": "error", "message": "Invalid or expired OTP"}

    def test_missing_new_password_returns_400(self, client: TestClient) -> None:
        response = client.post(
            "/v1/auth/reset-password", json={"email": "user@example.com", "otp": "123456"}
        )
        assert response.status_code == 400


class TestMeEndpoint:
    def test_returns_profile(self, authed_client: TestClient) -> None:
        response = authed_client.get("/v1/auth/me")

        assert response.status_code == 200
        assert response.json()["data"] == {"user": EXPECTED_PROFILE}

    def test_bearer_token_resolved_by_service(
        self, client: TestClient, mock_service: MagicMock
    ) -> None:
        mock_service.authenticate.return_value = USER

        response = client.get("/v1/auth/me", headers={"Authorization": "Bearer abc.def.ghi"})

        assert response.status_code == 200
        mock_service.authenticate.assert_called_once_with("abc.def.ghi")

    def test_invalid_token_returns_401(self, client: TestClient, mock_service: MagicMock) -> None:
        mock_service.authenticate.side_effect = InvalidToken()

        response = client.get("/v1/auth/me", headers={"Authorization": "Bearer tampered"})

        assert response.status_code == 401
        assert response.json() == {"status": "error", "message": "Invalid or expired token"}


class TestUnexpectedErrors:
    def test_internal_error_is_generic_500(self, app: FastAPI, mock_service: MagicMock) -> None:
        """Unexpected exceptions leak no detail to the client."""
        mock_service.login.side_effect = RuntimeError("connection to 10.0.0.5 refused")
        client = TestClient(app, raise_server_exceptions=False)

        response = client.post(
            "/v1/auth/login", json={"email": "user@example.com", "password": "Secret123"}
        )

        assert response.status_code == 500
        assert response.json() == {"status": "error", "message": "Internal server error"}
        assert "10.0.0.5" not in response.text

    def test_unknown_route_uses_envelope(self, client: TestClient) -> None:
        response = client.get("/v1/auth/nope")

        assert response.status_code == 404
        assert response.json()["status"] == "error"

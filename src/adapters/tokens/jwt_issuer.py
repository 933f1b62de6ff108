"""
Session token adapter - Implements TokenIssuer protocol with PyJWT.

Tokens are HS256-signed JWTs carrying userId, email, iat, exp, iss and aud.
They are stateless: nothing is persisted, so a token stays valid until it
expires.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from src.domain.exceptions import InvalidToken
from src.domain.ports import SessionClaims

_ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ["userId", "email", "iat", "exp", "iss", "aud"]


class JwtTokenIssuer:
    """
    Implements TokenIssuer protocol via PyJWT.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        secret: str,
        expires_in: timedelta = timedelta(days=7),
        issuer: str = "follower-api",
        audience: str = "follower-app",
    ) -> None:
        self._secret = secret
        self._expires_in = expires_in
        self._issuer = issuer
        self._audience = audience

    def issue(self, user_id: str, email: str) -> str:
        """Create a signed token for the user, valid for expires_in."""
        now = datetime.now(UTC)
        payload = {
            "userId": user_id,
            "email": email,
            "iat": now,
            "exp": now + self._expires_in,
            "iss": self._issuer,
            "aud": self._audience,
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> SessionClaims:
        """
        Verify signature, expiry, issuer and audience.

        Raises:
            InvalidToken: For any failed check or malformed token
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                audience=self._audience,
                issuer=self._issuer,
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.InvalidTokenError as e:
            raise InvalidToken() from e

        user_id = payload["userId"]
        email = payload["email"]
        if not isinstance(user_id, str) or not isinstance(email, str):
            raise InvalidToken()

        return SessionClaims(
            user_id=user_id,
            email=email,
            issued_at=datetime.fromtimestamp(payload["iat"], UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )

    def decode(self, token: str) -> dict[str, Any]:
        """
        Parse the payload WITHOUT verifying it.

        For debugging and inspection only. The result may be forged and
        must never feed an authorization decision.

        Raises:
            InvalidToken: If the token is not a well-formed JWT
        """
        try:
            return jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError as e:
            raise InvalidToken() from e

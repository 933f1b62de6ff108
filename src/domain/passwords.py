"""
Credential hashing - bcrypt one-way password transform.

bcrypt embeds a fresh random salt in every hash, so hashing the same
password twice yields different strings, and its checkpw comparison is
constant-time.
"""

from dataclasses import dataclass

import bcrypt

from .exceptions import ValidationError

# bcrypt only looks at the first 72 bytes of its input
_BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class PasswordHasher:
    """Hash and verify passwords with a configurable bcrypt cost factor."""

    rounds: int = 10

    def hash(self, password: str) -> str:
        """
        Hash password using bcrypt with a per-call random salt.

        Raises:
            ValidationError: If the password exceeds bcrypt's 72-byte limit.
        """
        encoded = password.encode()
        if len(encoded) > _BCRYPT_MAX_BYTES:
            raise ValidationError("Password must be at most 72 bytes")
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self.rounds)).decode()

    def verify(self, password: str, password_hash: str) -> bool:
        """
        Check a password against a stored hash.

        Malformed or empty hashes return False instead of raising, so the
        authentication path only ever sees a yes/no answer.
        """
        try:
            return bcrypt.checkpw(password.encode(), password_hash.encode())
        except (ValueError, TypeError, AttributeError):
            return False

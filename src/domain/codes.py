"""One-time code generation."""

import secrets

CODE_LENGTH = 6
_DIGITS = "0123456789"


def generate_code() -> str:
    """
    Generate a cryptographically secure 6-digit one-time code.

    Each digit is drawn independently from the secrets module, so every
    value 000000-999999 is equally likely. Returns a string to preserve
    leading zeros.
    """
    return "".join(secrets.choice(_DIGITS) for _ in range(CODE_LENGTH))


def is_well_formed(code: str) -> bool:
    """True if code is exactly CODE_LENGTH ASCII digits."""
    return len(code) == CODE_LENGTH and all(c in _DIGITS for c in code)

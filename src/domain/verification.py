"""
Verification engine - validates a submitted one-time code.

A code verifies only if all of these hold at the moment of consumption:
the stored code equals the submitted one (exact string match), the stored
purpose matches, the code has not been used, and it has not expired.

The check and the used-flag transition are a single conditional update in
the repository, so two concurrent requests with the same valid code can
never both succeed. Every failure collapses to False; callers must not be
able to tell "wrong" from "expired" from "already used" from "no such user".
"""

import logging
from dataclasses import dataclass

from .codes import is_well_formed
from .ports import CodePurpose, UserRepository

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """
    Normalize email address for consistent storage and lookup.

    Applies: strip whitespace + lowercase
    """
    return email.strip().lower()


@dataclass
class CodeVerifier:
    """Checks and consumes one-time codes against the user's code slot."""

    repository: UserRepository

    def verify(self, email: str, submitted_code: str, purpose: CodePurpose) -> bool:
        normalized_email = normalize_email(email)

        user = self.repository.find_by_email(normalized_email)
        if user is None:
            logger.info("Code verification failed: unknown email")
            return False

        if not is_well_formed(submitted_code):
            logger.info("Code verification failed: malformed code for user %s", user.id)
            return False

        consumed = self.repository.consume_code(normalized_email, submitted_code, purpose)
        if not consumed:
            logger.info("Code verification failed for user %s (%s)", user.id, purpose.value)
            return False

        logger.info("Code verified for user %s (%s)", user.id, purpose.value)
        return True

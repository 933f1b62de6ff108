"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging one-time codes for local development.
"""

import logging

from src.domain.ports import CodePurpose

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For development only - selected with EMAIL_BACKEND=console.
    """

    def send_code(self, email: str, code: str, purpose: CodePurpose) -> None:
        """
        Log the one-time code instead of emailing it.

        Args:
            email: Recipient email address (normalized by domain layer)
            code: 6-digit one-time code
            purpose: Why the code was issued
        """
        logger.info(
            "[VERIFICATION] Email: %s Purpose: %s Code: %s", email, purpose.value, code
        )

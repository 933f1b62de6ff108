"""
SMTP email sender adapter - Implements EmailSender protocol.

Delivers one-time codes over SMTP. With secure=True the connection uses
implicit TLS from the start (port 465 style); otherwise it connects in
plain text and upgrades with STARTTLS when the server offers it. Credentials
are only ever sent over TLS: without STARTTLS, an authenticated send fails.

Delivery is synchronous: send_code returns only after the server accepted
the message, and any transport failure is raised as DeliveryFailure so the
caller never reports success for an email that was not sent.
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage

from src.adapters.smtp.messages import render_code_message
from src.domain.exceptions import DeliveryFailure
from src.domain.ports import CodePurpose

logger = logging.getLogger(__name__)


class SmtpEmailSender:
    """
    Implements EmailSender protocol via smtplib.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Opens one connection per message; no pooling or retries at this layer.
    """

    def __init__(
        self,
        host: str,
        port: int,
        from_address: str,
        username: str | None = None,
        password: str | None = None,
        secure: bool = False,
        timeout: float = 10.0,
        ttl_minutes: int = 10,
    ) -> None:
        self._host = host
        self._port = port
        self._from_address = from_address
        self._username = username
        self._password = password
        self._secure = secure
        self._timeout = timeout
        self._ttl_minutes = ttl_minutes

    def send_code(self, email: str, code: str, purpose: CodePurpose) -> None:
        """
        Send a purpose-specific code email.

        Raises:
            DeliveryFailure: On any SMTP protocol error, timeout or
                connection failure
        """
        message = self._build_message(email, code, purpose)

        logger.info("Sending %s code email to %s", purpose.value, email)
        try:
            with self._connect() as smtp:
                if self._username:
                    smtp.login(self._username, self._password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send %s code email to %s: %s", purpose.value, email, e)
            raise DeliveryFailure() from e
        logger.info("Sent %s code email to %s", purpose.value, email)

    def _build_message(self, email: str, code: str, purpose: CodePurpose) -> EmailMessage:
        rendered = render_code_message(code, purpose, self._ttl_minutes)
        message = EmailMessage()
        message["From"] = self._from_address
        message["To"] = email
        message["Subject"] = rendered.subject
        message.set_content(rendered.text)
        message.add_alternative(rendered.html, subtype="html")
        return message

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self._secure:
            return smtplib.SMTP_SSL(
                self._host, self._port, timeout=self._timeout, context=context
            )

        smtp = smtplib.SMTP(self._host, self._port, timeout=self._timeout)
        try:
            smtp.ehlo()
            if smtp.has_extn("starttls"):
                smtp.starttls(context=context)
                smtp.ehlo()
            elif self._username:
                raise smtplib.SMTPNotSupportedError(
                    "Server does not offer STARTTLS; refusing to send credentials in plaintext"
                )
        except Exception:
            smtp.close()
            raise
        return smtp

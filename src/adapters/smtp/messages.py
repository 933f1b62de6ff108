"""
Email templates for one-time codes.

Each purpose gets its own subject line; the body always states the code
and how long it stays valid.
"""

from dataclasses import dataclass

from src.domain.ports import CodePurpose

_SUBJECTS = {
    CodePurpose.REGISTRATION: "Verify Your Email",
    CodePurpose.FORGOT_PASSWORD: "Reset Your Password",
}


@dataclass(frozen=True)
class CodeMessage:
    subject: str
    text: str
    html: str


def render_code_message(code: str, purpose: CodePurpose, ttl_minutes: int) -> CodeMessage:
    """Render the subject, plain-text and HTML bodies for a code email."""
    subject = _SUBJECTS[purpose]
    text = (
        f"{subject}\n\n"
        f"Your OTP code is: {code}\n\n"
        f"This code will expire in {ttl_minutes} minutes.\n"
        "If you didn't request this, please ignore this email.\n"
    )
    html = f"""\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333;">{subject}</h2>
  <p>Your OTP code is:</p>
  <div style="font-size: 24px; font-weight: bold; color: #007bff; margin: 20px 0;">
    {code}
  </div>
  <p>This code will expire in {ttl_minutes} minutes.</p>
  <p>If you didn't request this, please ignore this email.</p>
</div>
"""
    return CodeMessage(subject=subject, text=text, html=html)

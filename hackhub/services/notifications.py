"""
Account emails: verification code, welcome, password reset and reset success.

Sent over SMTP when MAIL_SERVER is configured; otherwise only logged.
Delivery never blocks the state change it accompanies: ``send_email``
logs failures and returns False instead of raising.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Dict

from .. import config

logger = logging.getLogger(__name__)

_TEMPLATES: Dict[str, Dict[str, str]] = {
    "verification": {
        "subject": "Verify your email",
        "html": """
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2>Verify your email</h2>
            <p>Your verification code is:</p>
            <p style="font-size: 28px; font-weight: bold; letter-spacing: 4px;">{code}</p>
            <p>The code expires in {minutes} minutes.</p>
        </div>
        """,
    },
    "welcome": {
        "subject": "Welcome to HackHub",
        "html": """
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2>Welcome, {name}!</h2>
            <p>Your account is verified. Create a team or join one with an invite code to get started.</p>
        </div>
        """,
    },
    "password_reset": {
        "subject": "Reset your password",
        "html": """
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2>Password reset</h2>
            <p>Follow the link below to choose a new password. It expires in {minutes} minutes.</p>
            <p><a href="{reset_url}">Reset password</a></p>
            <p>If you did not ask for a reset, you can ignore this email.</p>
        </div>
        """,
    },
    "reset_success": {
        "subject": "Your password was changed",
        "html": """
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2>Password changed</h2>
            <p>Your password has been reset. If this wasn't you, contact the organisers right away.</p>
        </div>
        """,
    },
}


def render(template: str, **context) -> Dict[str, str]:
    entry = _TEMPLATES[template]
    return {
        "subject": entry["subject"].format(**context),
        "html": entry["html"].format(**context),
    }


def send_email(recipient: str, template: str, **context) -> bool:
    """Render ``template`` and deliver it to ``recipient``."""
    message = render(template, **context)

    if not config.MAIL_SERVER:
        logger.info("Email (log-only) to=%s subject=%s", recipient, message["subject"])
        return True

    mime = MIMEMultipart("alternative")
    mime["Subject"] = message["subject"]
    mime["From"] = config.MAIL_DEFAULT_SENDER
    mime["To"] = recipient
    mime.attach(MIMEText(message["html"], "html"))

    try:
        with smtplib.SMTP(config.MAIL_SERVER, config.MAIL_PORT, timeout=10) as smtp:
            if config.MAIL_USE_TLS:
                smtp.starttls()
            if config.MAIL_USERNAME:
                smtp.login(config.MAIL_USERNAME, config.MAIL_PASSWORD or "")
            smtp.sendmail(config.MAIL_DEFAULT_SENDER, [recipient], mime.as_string())
    except (smtplib.SMTPException, OSError):
        logger.warning("Email delivery failed to=%s template=%s", recipient, template, exc_info=True)
        return False

    logger.info("Email sent to=%s subject=%s", recipient, message["subject"])
    return True


def send_verification_email(email: str, code: str) -> bool:
    return send_email(email, "verification", code=code, minutes=config.VERIFICATION_CODE_EXPIRE_MINUTES)


def send_welcome_email(email: str, name: str) -> bool:
    return send_email(email, "welcome", name=name)


def send_password_reset_email(email: str, reset_url: str) -> bool:
    return send_email(email, "password_reset", reset_url=reset_url, minutes=config.RESET_TOKEN_EXPIRE_MINUTES)


def send_reset_success_email(email: str) -> bool:
    return send_email(email, "reset_success")

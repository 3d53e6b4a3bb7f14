"""Outbound account email over SMTP.

Email is optional: without ``MAIL_SERVER`` every send logs a warning and
returns None instead of failing the request that triggered it.
"""

from __future__ import annotations

import smtplib
from email.message import EmailMessage

from flask import current_app

from models.user import User


def _configured() -> bool:
    return bool(current_app.config.get("MAIL_SERVER"))


def _send(to: str, subject: str, body: str) -> str | None:
    config = current_app.config
    if not _configured():
        current_app.logger.warning("Email not configured - %r not sent to %s", subject, to)
        return None

    message = EmailMessage()
    message["From"] = config.get("MAIL_DEFAULT_SENDER")
    message["To"] = to
    message["Subject"] = subject
    message.set_content(body)

    with smtplib.SMTP(config["MAIL_SERVER"], config.get("MAIL_PORT", 587), timeout=10) as smtp:
        if config.get("MAIL_USE_TLS", True):
            smtp.starttls()
        if config.get("MAIL_USERNAME"):
            smtp.login(config["MAIL_USERNAME"], config.get("MAIL_PASSWORD") or "")
        smtp.send_message(message)

    current_app.logger.info("Sent %r to %s", subject, to)
    return to


def send_verification_email(user: User, token: str) -> str | None:
    frontend = current_app.config.get("FRONTEND_URL", "").rstrip("/")
    link = f"{frontend}/verify-email?token={token}"
    body = (
        f"Hi {user.name},\n\n"
        "Thanks for joining Nixicon. Confirm your email address to start "
        f"creating projects:\n\n{link}\n"
    )
    return _send(user.email, "Verify Your Nixicon Account", body)


def send_welcome_email(user: User) -> str | None:
    body = (
        f"Hi {user.name},\n\n"
        "Your email is verified. Describe your idea in a new project and we "
        "will suggest the features to build first.\n"
    )
    return _send(user.email, "Welcome to Nixicon", body)

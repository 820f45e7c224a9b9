"""
Plain-text SMTP sending for subscriber notifications.
"""
from __future__ import annotations

import os
import smtplib
from email.mime.text import MIMEText
from typing import NamedTuple, Optional

DEFAULT_FROM = "alerts@davenportcameraalerts.com"


class SmtpSettings(NamedTuple):
    server: str
    port: int
    user: Optional[str]
    password: Optional[str]
    sender: str
    timeout: float


def smtp_settings() -> SmtpSettings:
    """Read SMTP settings from the environment on every call so `.env` edits apply."""
    server = os.getenv("SMTP_SERVER", "smtp.gmail.com")
    user = os.getenv("EMAIL_USER")
    sender = os.getenv("EMAIL_FROM") or user or DEFAULT_FROM
    # Gmail rejects a From that doesn't match the authenticated account
    if "gmail" in server.lower() and user:
        sender = user
    return SmtpSettings(
        server=server,
        port=int(os.getenv("SMTP_PORT", "587")),
        user=user,
        password=os.getenv("EMAIL_PASSWORD"),
        sender=sender,
        timeout=float(os.getenv("SMTP_TIMEOUT_SECONDS", "20")),
    )


def email_configured() -> bool:
    settings = smtp_settings()
    return bool(settings.user and settings.password)


def send_text_email(to_email: str, subject: str, body: str) -> None:
    settings = smtp_settings()
    if not (settings.user and settings.password):
        raise RuntimeError("Email credentials not configured. Set EMAIL_USER and EMAIL_PASSWORD.")

    msg = MIMEText(body)
    msg["Subject"] = subject
    msg["From"] = settings.sender
    msg["To"] = to_email

    with smtplib.SMTP(settings.server, settings.port, timeout=settings.timeout) as server:
        server.starttls()
        server.login(settings.user, settings.password)
        server.sendmail(settings.sender, [to_email], msg.as_string())

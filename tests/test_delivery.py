import asyncio
from email import message_from_string

import pytest

import app.email_utils as email_utils
from worker.davenport_engine import ScrapedLocation
from worker.delivery import send_camera_update_email

LOCATIONS = [ScrapedLocation("5800 Eastern Ave", "mobile", "Mobile camera location for Monday", "Monday (6/1-6/7)")]


class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host, self.port, self.timeout = host, port, timeout

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        if password == "wrong":
            raise email_utils.smtplib.SMTPAuthenticationError(535, b"bad credentials")

    def sendmail(self, sender, recipients, raw):
        FakeSMTP.sent.append((self.host, sender, recipients, raw))


@pytest.fixture
def smtp(monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(email_utils.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setenv("SMTP_SERVER", "mail.example.com")
    monkeypatch.setenv("EMAIL_USER", "alerts@example.com")
    monkeypatch.setenv("EMAIL_PASSWORD", "secret")
    monkeypatch.delenv("EMAIL_FROM", raising=False)
    return FakeSMTP


def test_camera_update_email_is_sent(smtp):
    result = asyncio.run(send_camera_update_email("driver@example.com", LOCATIONS))

    assert result.success is True
    host, sender, recipients, raw = smtp.sent[0]
    assert (host, sender, recipients) == ("mail.example.com", "alerts@example.com", ["driver@example.com"])
    msg = message_from_string(raw)
    assert msg["Subject"].startswith("Davenport Camera Locations Updated - 1 Locations")
    assert "5800 Eastern Ave" in msg.get_payload(decode=True).decode()


def test_gmail_forces_authenticated_sender(smtp, monkeypatch):
    monkeypatch.setenv("SMTP_SERVER", "smtp.gmail.com")
    monkeypatch.setenv("EMAIL_FROM", "someone-else@example.com")

    assert email_utils.smtp_settings().sender == "alerts@example.com"


def test_smtp_failure_becomes_failed_result(smtp, monkeypatch):
    monkeypatch.setenv("EMAIL_PASSWORD", "wrong")

    result = asyncio.run(send_camera_update_email("driver@example.com", LOCATIONS))

    assert result.success is False
    assert "bad credentials" in result.error
    assert smtp.sent == []


def test_unconfigured_email_is_not_attempted(smtp, monkeypatch):
    monkeypatch.delenv("EMAIL_PASSWORD")

    result = asyncio.run(send_camera_update_email("driver@example.com", LOCATIONS))

    assert result == (False, "email not configured")
    assert smtp.sent == []

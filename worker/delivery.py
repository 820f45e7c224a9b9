"""
Email and push delivery adapters.

Both return DeliveryResult instead of raising, so the dispatcher can record
an audit row per attempt and move on to the next subscriber.
"""
from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime, timezone
from typing import Dict, NamedTuple, Optional, Sequence

import firebase_admin
from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from app.email_utils import email_configured, send_text_email

OFFICIAL_SOURCE_URL = (
    "https://www.davenportiowa.com/government/departments/police/automated_traffic_enforcement"
)
PUSH_TITLE = "Camera Locations Updated!"

log = logging.getLogger("worker.delivery")


class DeliveryResult(NamedTuple):
    success: bool
    error: Optional[str] = None


def _field(item, name: str) -> str:
    if isinstance(item, dict):
        return item.get(name) or ""
    return getattr(item, name, "") or ""


def build_email_subject(locations: Sequence, today: datetime | None = None) -> str:
    today = today or datetime.now(timezone.utc)
    stamp = f"{today:%b} {today.day}, {today.year}"
    return f"Davenport Camera Locations Updated - {len(locations)} Locations ({stamp})"


def build_email_body(locations: Sequence) -> str:
    lines = [
        "Davenport Traffic Camera Location Update",
        "",
        "The mobile traffic camera locations have been updated on the City of Davenport website. "
        "Here are the current locations for this week:",
        "",
    ]
    for idx, loc in enumerate(locations, start=1):
        lines.append(f"{idx}. {_field(loc, 'address')}")
        lines.append(f"   Type: {_field(loc, 'type').replace('_', ' ').upper()}")
        if _field(loc, "description"):
            lines.append(f"   Description: {_field(loc, 'description')}")
        if _field(loc, "schedule"):
            lines.append(f"   Schedule: {_field(loc, 'schedule')}")
        lines.append("")

    lines.extend(
        [
            "Important Reminders:",
            "- Always drive safely and obey posted speed limits",
            "- Camera locations and schedules may change without notice",
            "- For the most up-to-date information, visit the official city website",
            "",
            f"Official Source: {OFFICIAL_SOURCE_URL}",
            "",
            "You are receiving this notification because you subscribed to Davenport Camera Alerts.",
            "",
            "Drive safely!",
            "Davenport Camera Alerts Team",
            "",
            "---",
            "This is an automated notification from an unofficial community service. "
            "We are not affiliated with the City of Davenport.",
        ]
    )
    return "\n".join(lines)


def build_push_body(location_count: int) -> str:
    return f"{location_count} camera locations have been updated for this week. Tap to view details."


def build_push_data(location_count: int) -> Dict[str, str]:
    # FCM data payload values must be strings
    return {
        "type": "camera_update",
        "locationCount": str(location_count),
        "url": "/#locations",
    }


async def send_camera_update_email(email: str, locations: Sequence) -> DeliveryResult:
    if not email_configured():
        log.warning("Email not configured; skipping send", extra={"to": email})
        return DeliveryResult(False, "email not configured")

    subject = build_email_subject(locations)
    body = build_email_body(locations)
    try:
        await asyncio.to_thread(send_text_email, email, subject, body)
    except Exception as e:
        log.error("Failed to send email", extra={"to": email, "error": str(e)})
        return DeliveryResult(False, str(e) or type(e).__name__)
    log.info("Email sent", extra={"to": email})
    return DeliveryResult(True)


# -------- Push (firebase-admin) --------

def push_configured() -> bool:
    return bool(os.getenv("FIREBASE_PROJECT_ID"))


def _firebase_app():
    try:
        return firebase_admin.get_app()
    except ValueError:
        return firebase_admin.initialize_app(options={"projectId": os.getenv("FIREBASE_PROJECT_ID")})


def _send_push_sync(token: str, title: str, body: str, data: Dict[str, str]) -> str:
    message = messaging.Message(
        notification=messaging.Notification(title=title, body=body),
        data=data,
        token=token,
    )
    return messaging.send(message, app=_firebase_app())


async def send_camera_update_push(token: str, title: str, body: str, data: Dict[str, str]) -> DeliveryResult:
    try:
        message_id = await asyncio.to_thread(_send_push_sync, token, title, body, data)
    except (firebase_exceptions.FirebaseError, ValueError, OSError) as e:
        log.error("Failed to send push", extra={"error": str(e)})
        return DeliveryResult(False, str(e) or type(e).__name__)
    log.info("Push sent", extra={"message_id": message_id})
    return DeliveryResult(True)


__all__ = [
    "DeliveryResult",
    "OFFICIAL_SOURCE_URL",
    "PUSH_TITLE",
    "build_email_body",
    "build_email_subject",
    "build_push_body",
    "build_push_data",
    "push_configured",
    "send_camera_update_email",
    "send_camera_update_push",
]

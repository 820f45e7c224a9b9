"""
Notification throttling and per-subscriber dispatch.

The cooldown timestamp lives in notification_state, not in process memory,
so restarts and a second worker instance see the same window.
"""
from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from core.database import (
    LOCATION_CHANGES,
    create_notification_record,
    get_eligible_subscribers,
    get_last_notified_at,
    set_last_notified_at,
)
from core.errors import DispatchError, PersistenceError
from core.rate_limit import TokenBucket
from worker.delivery import (
    PUSH_TITLE,
    DeliveryResult,
    build_email_body,
    build_email_subject,
    build_push_body,
    build_push_data,
    push_configured,
    send_camera_update_email,
    send_camera_update_push,
)

# -------- CONFIG --------
NOTIFICATION_COOLDOWN_HOURS = float(os.getenv("NOTIFICATION_COOLDOWN_HOURS", "4"))
DISPATCH_DELAY_SECONDS = float(os.getenv("DISPATCH_DELAY_SECONDS", "1.0"))
# ------------------------

log = logging.getLogger("worker.notifier")

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationThrottler:
    """Cooldown gate between notification batches."""

    def __init__(
        self,
        cooldown: timedelta = timedelta(hours=NOTIFICATION_COOLDOWN_HOURS),
        now: Clock = utcnow,
        load: Callable[[], Optional[datetime]] | None = None,
        save: Callable[[datetime], None] | None = None,
    ):
        self.cooldown = cooldown
        self._now = now
        self._load = load or get_last_notified_at
        self._save = save or set_last_notified_at
        self.last_notified_at: Optional[datetime] = None

    def load(self) -> Optional[datetime]:
        self.last_notified_at = self._load()
        return self.last_notified_at

    def cooldown_remaining(self, at: datetime | None = None) -> timedelta:
        if self.last_notified_at is None:
            return timedelta(0)
        at = at or self._now()
        remaining = self.last_notified_at + self.cooldown - at
        return max(remaining, timedelta(0))

    def should_notify(self, at: datetime | None = None) -> bool:
        return self.cooldown_remaining(at) == timedelta(0)

    def record_success(self, at: datetime | None = None) -> None:
        self.last_notified_at = at or self._now()
        self._save(self.last_notified_at)


@dataclass
class DispatchSummary:
    eligible: int = 0
    emails_sent: int = 0
    emails_failed: int = 0
    push_sent: int = 0
    push_failed: int = 0
    subscribers_notified: int = 0
    subscribers_failed: int = 0

    @property
    def any_success(self) -> bool:
        return self.subscribers_notified > 0

    def as_dict(self) -> Dict:
        return asdict(self)


EmailSender = Callable[[str, Sequence], Awaitable[DeliveryResult]]
PushSender = Callable[[str, str, str, Dict[str, str]], Awaitable[DeliveryResult]]


class NotificationDispatcher:
    def __init__(
        self,
        send_email: EmailSender = send_camera_update_email,
        send_push: PushSender = send_camera_update_push,
        limiter: TokenBucket | None = None,
        push_enabled: Callable[[], bool] = push_configured,
    ):
        self.send_email = send_email
        self.send_push = send_push
        self.limiter = limiter or TokenBucket.every(DISPATCH_DELAY_SECONDS)
        self.push_enabled = push_enabled

    async def _attempt(self, channel: str, send: Callable[[], Awaitable[DeliveryResult]]) -> DeliveryResult:
        try:
            return await send()
        except Exception as e:
            err = DispatchError(f"{channel} delivery raised", cause=e, channel=channel)
            log.error("Dispatch error", extra=err.to_dict())
            return DeliveryResult(False, str(e) or type(e).__name__)

    def _record(self, subscriber_id: int, channel: str, subject: str, content: str, result: DeliveryResult) -> None:
        try:
            create_notification_record(
                subscriber_id=subscriber_id,
                channel=channel,
                subject=subject,
                content=content,
                status="sent" if result.success else "failed",
                error=result.error,
            )
        except Exception as e:
            # the delivery already happened; a lost audit row must not stop the batch
            err = PersistenceError(
                "Failed to write notification record", cause=e, subscriber_id=subscriber_id, channel=channel
            )
            log.error("Audit write failed", extra=err.to_dict())

    async def dispatch(self, locations: Sequence, subscribers: List[Dict] | None = None) -> DispatchSummary:
        """
        Email every eligible subscriber, plus push where a token is present.
        One subscriber's failure never stops the loop.
        """
        if subscribers is None:
            subscribers = get_eligible_subscribers(LOCATION_CHANGES)
        summary = DispatchSummary(eligible=len(subscribers))
        if not subscribers:
            log.info("No eligible subscribers. Nothing to send.")
            return summary

        subject = build_email_subject(locations)
        body = build_email_body(locations)
        push_body = build_push_body(len(locations))
        push_data = build_push_data(len(locations))
        push_on = self.push_enabled()

        for sub in subscribers:
            await self.limiter.acquire()
            sub_id = int(sub["id"])
            email = (sub.get("email") or "").strip()
            delivered = False

            email_result = await self._attempt("email", lambda: self.send_email(email, locations))
            self._record(sub_id, "email", subject, body, email_result)
            if email_result.success:
                summary.emails_sent += 1
                delivered = True
            else:
                summary.emails_failed += 1

            token = sub.get("fcm_token")
            if token and push_on:
                push_result = await self._attempt(
                    "push", lambda: self.send_push(token, PUSH_TITLE, push_body, push_data)
                )
                self._record(sub_id, "push", PUSH_TITLE, push_body, push_result)
                if push_result.success:
                    summary.push_sent += 1
                    delivered = True
                else:
                    summary.push_failed += 1

            if delivered:
                summary.subscribers_notified += 1
            else:
                summary.subscribers_failed += 1
                log.warning("All deliveries failed for subscriber", extra={"subscriber_id": sub_id})

        log.info("Dispatch complete", extra=summary.as_dict())
        return summary


__all__ = [
    "DISPATCH_DELAY_SECONDS",
    "DispatchSummary",
    "NOTIFICATION_COOLDOWN_HOURS",
    "NotificationDispatcher",
    "NotificationThrottler",
    "utcnow",
]

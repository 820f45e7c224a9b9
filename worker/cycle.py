"""
One scrape -> detect -> reconcile -> throttle -> dispatch cycle.

The orchestrator owns the cooldown state (loaded in `initialize()`, persisted
on every successful batch) and a busy flag: a second `run_cycle()` or
`send_notifications()` while one is in flight raises CycleInProgressError
instead of racing the close-all-then-reopen step.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from core.database import (
    count_deployments_scraped_since,
    count_notifications_since,
    get_camera_locations,
)
from core.errors import CycleInProgressError
from worker.change_detector import has_changed
from worker.davenport_engine import ScrapedLocation, fetch_locations
from worker.geocoding import Geocoder
from worker.notifier import DispatchSummary, NotificationDispatcher, NotificationThrottler, utcnow
from worker.reconciler import ReconcileResult, reconcile

log = logging.getLogger("worker.cycle")

Fetcher = Callable[[], Awaitable[List[ScrapedLocation]]]


def _iso(dt: datetime) -> str:
    return dt.isoformat(timespec="seconds")


@dataclass
class CycleResult:
    started_at: str
    finished_at: Optional[str] = None
    location_count: int = 0
    changed: bool = False
    reconcile: Optional[ReconcileResult] = None
    notified: bool = False
    skipped_reason: Optional[str] = None
    dispatch: Optional[DispatchSummary] = None
    extra: Dict = field(default_factory=dict)

    def as_dict(self) -> Dict:
        return asdict(self)


class CycleOrchestrator:
    def __init__(
        self,
        fetch: Fetcher = fetch_locations,
        geocoder=None,
        dispatcher: NotificationDispatcher | None = None,
        throttler: NotificationThrottler | None = None,
        now: Callable[[], datetime] = utcnow,
    ):
        self._fetch = fetch
        self.geocoder = geocoder or Geocoder()
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.throttler = throttler or NotificationThrottler(now=now)
        self._now = now
        self._busy = False
        self._initialized = False
        self.last_result: Optional[CycleResult] = None

    @property
    def running(self) -> bool:
        return self._busy

    def initialize(self) -> None:
        """Load persisted cooldown state. Safe to call more than once."""
        last = self.throttler.load()
        self._initialized = True
        log.info("Orchestrator initialized", extra={"last_notified_at": _iso(last) if last else None})

    def _acquire(self) -> None:
        if self._busy:
            raise CycleInProgressError("A camera refresh cycle is already running")
        if not self._initialized:
            self.initialize()
        self._busy = True

    async def _notify(self, locations: Sequence, at: datetime, result: CycleResult, force: bool = False) -> None:
        # another process may have sent since we last looked
        self.throttler.load()
        if not force and not self.throttler.should_notify(at):
            remaining = self.throttler.cooldown_remaining(at)
            result.skipped_reason = "cooldown"
            log.info("Skipping notifications, cooldown active", extra={"remaining_seconds": int(remaining.total_seconds())})
            return

        summary = await self.dispatcher.dispatch(locations)
        result.dispatch = summary
        if summary.any_success:
            self.throttler.record_success(at)
            result.notified = True
        elif summary.eligible == 0:
            result.skipped_reason = "no_subscribers"
        else:
            result.skipped_reason = "all_deliveries_failed"
            log.warning("Every delivery failed; cooldown not updated", extra=summary.as_dict())

    async def run_cycle(self) -> CycleResult:
        """
        Fetch errors propagate with nothing written. An unchanged scrape
        writes nothing and sends nothing.
        """
        self._acquire()
        try:
            now = self._now()
            result = CycleResult(started_at=_iso(now))

            locations = await self._fetch()
            result.location_count = len(locations)

            if not has_changed(locations, get_camera_locations()):
                result.skipped_reason = "unchanged"
                log.info("No changes detected", extra={"count": len(locations)})
            else:
                result.changed = True
                result.reconcile = await reconcile(locations, self.geocoder, now)
                await self._notify(locations, now, result)

            result.finished_at = _iso(self._now())
            self.last_result = result
            return result
        finally:
            self._busy = False

    async def send_notifications(self, force: bool = False) -> CycleResult:
        """Dispatch the current snapshot without scraping. Cooldown applies unless forced."""
        self._acquire()
        try:
            now = self._now()
            result = CycleResult(started_at=_iso(now), extra={"manual": True, "force": force})
            locations = get_camera_locations()
            result.location_count = len(locations)
            if not locations:
                result.skipped_reason = "no_locations"
            else:
                await self._notify(locations, now, result, force=force)
            result.finished_at = _iso(self._now())
            return result
        finally:
            self._busy = False

    def status(self) -> Dict:
        now = self._now()
        self.throttler.load()
        start_of_day = _iso(now.replace(hour=0, minute=0, second=0, microsecond=0))
        last = self.throttler.last_notified_at
        remaining = self.throttler.cooldown_remaining(now)
        return {
            "running": self._busy,
            "deployments_today": count_deployments_scraped_since(start_of_day),
            "notifications_today": count_notifications_since(start_of_day),
            "last_notified_at": _iso(last) if last else None,
            "can_notify": self.throttler.should_notify(now),
            "cooldown_remaining_seconds": int(remaining.total_seconds()),
            "cooldown_hours": self.throttler.cooldown.total_seconds() / 3600,
            "last_cycle": self.last_result.as_dict() if self.last_result else None,
        }


def build_orchestrator() -> CycleOrchestrator:
    return CycleOrchestrator(
        fetch=fetch_locations,
        geocoder=Geocoder(),
        dispatcher=NotificationDispatcher(),
        throttler=NotificationThrottler(),
    )


__all__ = ["CycleOrchestrator", "CycleResult", "build_orchestrator"]

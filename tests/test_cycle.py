import asyncio
from datetime import timedelta

import pytest

from core.database import (
    add_subscriber,
    get_all_deployments,
    get_camera_locations,
    get_current_deployments,
    get_last_notified_at,
)
from core.errors import CycleInProgressError, FetchError
from worker.cycle import CycleOrchestrator
from worker.davenport_engine import ScrapedLocation
from worker.delivery import DeliveryResult
from worker.notifier import NotificationDispatcher, NotificationThrottler

EASTERN = ScrapedLocation("5800 Eastern Ave", "mobile", "Mobile camera location for Monday", "Monday (6/1-6/7)")
BRADY = ScrapedLocation("1900 Brady St", "mobile", "Mobile camera location for Tuesday", "Tuesday (6/1-6/7)")


class Scraper:
    def __init__(self):
        self.pages = []

    async def __call__(self):
        result = self.pages.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def sent():
    return []


@pytest.fixture
def orchestrator(db, fake_geocoder, clock, no_wait, sent):
    async def send_email(email, locations):
        sent.append((email, len(locations)))
        return DeliveryResult(True)

    async def send_push(token, title, body, data):
        return DeliveryResult(True)

    add_subscriber("driver@example.com")
    orch = CycleOrchestrator(
        fetch=Scraper(),
        geocoder=fake_geocoder,
        dispatcher=NotificationDispatcher(send_email, send_push, limiter=no_wait, push_enabled=lambda: False),
        throttler=NotificationThrottler(cooldown=timedelta(hours=4), now=clock),
        now=clock,
    )
    orch.initialize()
    return orch


def test_end_to_end_three_cycles(orchestrator, clock, sent):
    t0 = clock.now
    scraper = orchestrator._fetch
    scraper.pages = [[EASTERN], [EASTERN], [EASTERN, BRADY]]

    # cycle 1: first sighting
    first = asyncio.run(orchestrator.run_cycle())
    assert first.changed and first.notified
    assert len(get_current_deployments()) == 1
    assert len(get_camera_locations()) == 1
    assert get_last_notified_at() == t0
    assert len(sent) == 1

    # cycle 2, 90 minutes later: identical scrape, nothing written
    clock.now = t0 + timedelta(minutes=90)
    before = get_all_deployments()
    second = asyncio.run(orchestrator.run_cycle())
    assert second.changed is False
    assert second.skipped_reason == "unchanged"
    assert get_all_deployments() == before
    assert len(sent) == 1

    # cycle 3, 5 hours after cycle 1: Brady St added, cooldown elapsed
    clock.now = t0 + timedelta(hours=5)
    third = asyncio.run(orchestrator.run_cycle())
    assert third.changed and third.notified
    assert third.reconcile.closed == 1

    rows = get_all_deployments()
    eastern = [r for r in rows if r["address"] == "5800 Eastern Ave"]
    assert len(eastern) == 2
    assert sum(1 for r in eastern if r["end_date"] is None) == 1
    assert sorted(r["address"] for r in get_current_deployments()) == ["1900 Brady St", "5800 Eastern Ave"]
    assert len(sent) == 2
    assert get_last_notified_at() == t0 + timedelta(hours=5)


def test_change_inside_cooldown_is_persisted_but_not_sent(orchestrator, clock, sent):
    t0 = clock.now
    orchestrator._fetch.pages = [[EASTERN], [EASTERN, BRADY]]

    asyncio.run(orchestrator.run_cycle())
    clock.now = t0 + timedelta(hours=3)
    result = asyncio.run(orchestrator.run_cycle())

    assert result.changed is True
    assert result.notified is False
    assert result.skipped_reason == "cooldown"
    assert len(get_current_deployments()) == 2
    assert len(sent) == 1
    assert get_last_notified_at() == t0


def test_all_deliveries_failing_keeps_old_timestamp(db, fake_geocoder, clock, no_wait):
    add_subscriber("bounce@example.com")

    async def send_email(email, locations):
        return DeliveryResult(False, "mailbox full")

    scraper = Scraper()
    scraper.pages = [[EASTERN]]
    orch = CycleOrchestrator(
        fetch=scraper,
        geocoder=fake_geocoder,
        dispatcher=NotificationDispatcher(send_email, limiter=no_wait, push_enabled=lambda: False),
        throttler=NotificationThrottler(now=clock),
        now=clock,
    )

    result = asyncio.run(orch.run_cycle())

    assert result.notified is False
    assert result.skipped_reason == "all_deliveries_failed"
    assert get_last_notified_at() is None


def test_fetch_failure_writes_nothing(orchestrator):
    orchestrator._fetch.pages = [FetchError("Source page returned HTTP 503", status=503)]

    with pytest.raises(FetchError):
        asyncio.run(orchestrator.run_cycle())

    assert get_all_deployments() == []
    assert get_camera_locations() == []
    assert orchestrator.running is False


def test_concurrent_cycle_is_rejected(orchestrator):
    async def scenario():
        gate = asyncio.Event()

        async def slow_fetch():
            await gate.wait()
            return [EASTERN]

        orchestrator._fetch = slow_fetch
        first = asyncio.create_task(orchestrator.run_cycle())
        await asyncio.sleep(0)

        with pytest.raises(CycleInProgressError):
            await orchestrator.run_cycle()
        with pytest.raises(CycleInProgressError):
            await orchestrator.send_notifications()

        gate.set()
        return await first

    result = asyncio.run(scenario())
    assert result.changed is True
    assert len(get_current_deployments()) == 1


def test_manual_send_respects_cooldown_unless_forced(orchestrator, clock, sent):
    orchestrator._fetch.pages = [[EASTERN]]
    asyncio.run(orchestrator.run_cycle())
    clock.now = clock.now + timedelta(hours=1)

    skipped = asyncio.run(orchestrator.send_notifications())
    assert skipped.skipped_reason == "cooldown"

    forced = asyncio.run(orchestrator.send_notifications(force=True))
    assert forced.notified is True
    assert len(sent) == 2

    status = orchestrator.status()
    assert status["can_notify"] is False
    assert status["cooldown_remaining_seconds"] == 4 * 3600
    assert status["last_cycle"]["changed"] is True


def test_second_instance_sees_persisted_cooldown(orchestrator, db, fake_geocoder, clock, no_wait, sent):
    async def api_email(email, locations):
        sent.append(("api", email))
        return DeliveryResult(True)

    api_scraper = Scraper()
    api_scraper.pages = [[EASTERN, BRADY]]
    api_orch = CycleOrchestrator(
        fetch=api_scraper,
        geocoder=fake_geocoder,
        dispatcher=NotificationDispatcher(api_email, limiter=no_wait, push_enabled=lambda: False),
        throttler=NotificationThrottler(now=clock),
        now=clock,
    )
    # both start before anything has been sent
    api_orch.initialize()

    t0 = clock.now
    orchestrator._fetch.pages = [[EASTERN]]
    asyncio.run(orchestrator.run_cycle())

    clock.now = t0 + timedelta(hours=1)
    result = asyncio.run(api_orch.run_cycle())

    assert result.changed is True
    assert result.skipped_reason == "cooldown"
    assert len(sent) == 1
    assert get_last_notified_at() == t0
    assert api_orch.status()["cooldown_remaining_seconds"] == 3 * 3600

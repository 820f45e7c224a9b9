import asyncio
import logging
import os

from dotenv import load_dotenv

from core.database import init_db
from core.errors import CameraAlertError
from worker.cycle import CycleOrchestrator, build_orchestrator

# Load `.env` for local/dev runs (override=True so updates take effect after restart).
load_dotenv(override=True)

# -------- CONFIG --------
CHECK_INTERVAL = int(os.getenv("CHECK_INTERVAL", "1800"))  # seconds between checks
RUN_ONCE = os.getenv("RUN_ONCE", "false").lower() == "true"
# ------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger("worker")


async def run_once(orchestrator: CycleOrchestrator) -> bool:
    """
    Do one full check:
    - fetch the enforcement page
    - compare with the stored snapshot
    - on change: rewrite deployment history and the snapshot
    - notify subscribers unless the cooldown is active
    Returns True if subscribers were notified.
    """
    log.info("Checking camera locations...")
    try:
        result = await orchestrator.run_cycle()
    except CameraAlertError as e:
        log.error("Cycle failed", extra=e.to_dict())
        return False

    log.info(
        "Cycle complete",
        extra={
            "locations": result.location_count,
            "changed": result.changed,
            "notified": result.notified,
            "skipped": result.skipped_reason,
        },
    )
    return result.notified


async def main():
    init_db()
    orchestrator = build_orchestrator()
    orchestrator.initialize()

    while True:
        try:
            await run_once(orchestrator)
        except Exception as e:
            log.exception("Error during run", extra={"error": str(e)})

        if RUN_ONCE:
            break

        log.info("Sleeping", extra={"seconds": CHECK_INTERVAL})
        await asyncio.sleep(CHECK_INTERVAL)


if __name__ == "__main__":
    asyncio.run(main())

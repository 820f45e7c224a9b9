"""
Entry point to run the camera refresh worker (RUN_ONCE=true for a single cycle).
"""
import asyncio

from worker.main import main as worker_main


if __name__ == "__main__":
    asyncio.run(worker_main())

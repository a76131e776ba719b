"""
Demo Session Cleanup Job

Deactivates demo sessions whose window has passed. Rows are kept (only
is_active flips) so the daily quota still counts them.

Runs periodically inside the API process via DemoSessionCleanupWorker, or
once from the command line:
    python -m storefront.jobs.demo_cleanup
"""
import asyncio
import logging
from typing import Callable, Optional

from starlette.concurrency import run_in_threadpool

from ..core.clock import Clock, utcnow
from ..core.config import settings
from ..storage.base import Storage

logger = logging.getLogger(__name__)


def run_demo_cleanup(storage: Storage, clock: Clock = utcnow) -> int:
    """Deactivate expired sessions once. Returns the number of rows touched."""
    touched = storage.cleanup_expired_demo_sessions(clock())
    logger.info(f"Deactivated {touched} expired demo sessions")
    return touched


def _cleanup_with_configured_storage() -> int:
    from ..storage import get_storage
    storage_iter = get_storage()
    storage = next(storage_iter)
    try:
        return run_demo_cleanup(storage)
    finally:
        storage_iter.close()


class DemoSessionCleanupWorker:
    """Worker that periodically deactivates expired demo sessions"""

    def __init__(
        self,
        interval_seconds: Optional[int] = None,
        cleanup: Callable[[], int] = _cleanup_with_configured_storage,
    ):
        self.interval_seconds = interval_seconds or settings.DEMO_CLEANUP_INTERVAL_SECONDS
        self.cleanup = cleanup
        self.running = False
        self.task: Optional[asyncio.Task] = None

    async def start(self):
        """Start the cleanup worker"""
        if self.running:
            logger.warning("Demo cleanup worker is already running")
            return

        self.running = True
        self.task = asyncio.create_task(self._run())
        logger.info(f"Demo cleanup worker started (every {self.interval_seconds}s)")

    async def stop(self):
        """Stop the cleanup worker"""
        if not self.running:
            return

        self.running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
        logger.info("Demo cleanup worker stopped")

    async def run_once(self) -> int:
        try:
            return await run_in_threadpool(self.cleanup)
        except Exception as e:
            logger.error(f"Error in demo cleanup worker: {e}", exc_info=True)
            return 0

    async def _run(self):
        """Main worker loop"""
        while self.running:
            try:
                await self.run_once()
                await asyncio.sleep(self.interval_seconds)
            except asyncio.CancelledError:
                break


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    logger.info("Starting demo session cleanup job...")
    try:
        _cleanup_with_configured_storage()
        logger.info("Demo session cleanup job completed successfully")
    except Exception as e:
        logger.error(f"Demo session cleanup job failed: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    main()

"""
Background scheduler for deletion request housekeeping.

Runs inside the FastAPI application. Lazy checks on every confirm are what
enforce expiry; this loop only keeps storage tidy and re-drives hand-offs.
"""

import asyncio
from typing import Optional

from app.config import settings
from app.utils import logger


class SchedulerService:
    """
    Background scheduler that runs periodic tasks.

    Each pass:
    - marks overdue pending deletion requests expired
    - purges terminal requests past the retention window
    - purges initiation attempts outside the rate-limit window
    - re-submits consumed requests the deletion queue never accepted
    """

    def __init__(self, check_interval: int | None = None, startup_delay: float = 5):
        self._task: Optional[asyncio.Task] = None
        self._running = False
        self.check_interval = check_interval or settings.deletion_sweep_interval_seconds
        self.startup_delay = startup_delay

    @property
    def running(self) -> bool:
        return self._running

    async def start(self):
        """Start the background scheduler."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run_scheduler())
        logger.info(f"Background scheduler started (check_interval={self.check_interval}s)")

    async def stop(self):
        """Stop the background scheduler gracefully."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Background scheduler stopped")

    async def _run_scheduler(self):
        """Main scheduler loop."""
        # Let the app finish starting before the first pass
        await asyncio.sleep(self.startup_delay)

        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Scheduler error in deletion sweep: {e}", exc_info=True)

            try:
                await asyncio.sleep(self.check_interval)
            except asyncio.CancelledError:
                break

    async def run_once(self):
        """One housekeeping pass over deletion requests."""
        from app.db import get_db_session
        from app.services.deletion import deletion_service

        async with get_db_session() as db:
            stats = await deletion_service.sweep(db)

        if stats.expired or stats.purged or stats.attempts_purged or stats.handoffs_redriven:
            logger.info(
                f"Scheduler: expired={stats.expired} purged={stats.purged} "
                f"attempts_purged={stats.attempts_purged} handoffs_redriven={stats.handoffs_redriven}"
            )
        return stats


# Global scheduler instance
scheduler_service = SchedulerService()

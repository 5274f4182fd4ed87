"""Escalation Scheduler - Periodic escalation sweeps

Runs EscalationSweeper on a fixed interval inside the process's event loop.
A sweep never overlaps with itself in one process; runs missed while a
sweep is still going are collapsed into one.
"""
import asyncio
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config.settings import settings
from ..engine.escalation import EscalationSweeper
from ..utils.logger import get_logger

logger = get_logger(__name__)


class EscalationScheduler:
    """APScheduler wrapper owning the escalation sweep job"""

    JOB_ID = "escalation_sweep"

    def __init__(self, sweeper: Optional[EscalationSweeper] = None):
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._sweeper = sweeper
        self._is_running = False
        self._sweep_count = 0

    @property
    def sweeper(self) -> EscalationSweeper:
        if self._sweeper is None:
            self._sweeper = EscalationSweeper()
        return self._sweeper

    def start(self) -> None:
        """Start the scheduler"""
        if self._is_running:
            logger.warning("Scheduler already running")
            return

        self.scheduler = AsyncIOScheduler()

        self.scheduler.add_job(
            self._run_sweep,
            trigger=IntervalTrigger(minutes=settings.escalation_sweep_interval_minutes),
            id=self.JOB_ID,
            name="Escalation sweep",
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )

        self.scheduler.start()
        self._is_running = True
        logger.info(
            f"Escalation scheduler started (every {settings.escalation_sweep_interval_minutes} minutes)"
        )

    def stop(self) -> None:
        """Stop the scheduler"""
        if self.scheduler:
            self.scheduler.shutdown()
            self._is_running = False
            logger.info("Escalation scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self._is_running

    async def _run_sweep(self) -> None:
        """Run one sweep off the event loop; the sweep itself is blocking I/O"""
        try:
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(None, self.sweeper.run_escalation_sweep)
            self._sweep_count += 1
            logger.debug(
                f"Sweep #{self._sweep_count} done: {result.escalations_fired} escalations fired"
            )
        except Exception as e:
            logger.error(f"Error in escalation sweep job: {e}", exc_info=True)


# Global scheduler instance
_scheduler: Optional[EscalationScheduler] = None


def get_scheduler() -> EscalationScheduler:
    """Get or create scheduler instance"""
    global _scheduler
    if _scheduler is None:
        _scheduler = EscalationScheduler()
    return _scheduler


def start_scheduler() -> None:
    """Start the global scheduler"""
    scheduler = get_scheduler()
    scheduler.start()


def stop_scheduler() -> None:
    """Stop the global scheduler"""
    global _scheduler
    if _scheduler:
        _scheduler.stop()
        _scheduler = None

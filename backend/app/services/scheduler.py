"""Background scheduler that runs recurring expense generation on a fixed interval."""

import asyncio
import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.clock import utcnow
from app.config import settings
from app.database import SessionLocal
from app.services.generation_service import GenerationReport, run_once
from app.services.recurring_store import SqlRecurringExpenseStore

logger = logging.getLogger(__name__)


class RecurringExpenseScheduler:
    """
    Drives ``run_once`` from a single asyncio task.

    The first pass runs shortly after ``start()`` to catch up on occurrences
    missed while the process was down; after that a pass runs every
    ``interval_seconds``. Passes execute in a worker thread with their own
    session and never overlap: a tick that finds a pass in flight is skipped.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        interval_seconds: Optional[float] = None,
        startup_delay_seconds: Optional[float] = None,
        pass_timeout_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None
            else settings.recurring_interval_seconds
        )
        self.startup_delay_seconds = (
            startup_delay_seconds if startup_delay_seconds is not None
            else settings.recurring_startup_delay_seconds
        )
        self.pass_timeout_seconds = (
            pass_timeout_seconds if pass_timeout_seconds is not None
            else settings.recurring_pass_timeout_seconds
        )
        self.clock = clock

        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self._task: Optional[asyncio.Task] = None
        self._running = False
        self._pass_lock = threading.Lock()
        self._last_run: Optional[datetime] = None
        self._last_report: Optional[GenerationReport] = None
        self._last_error: Optional[str] = None
        self._last_trigger_skipped = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def pass_in_progress(self) -> bool:
        return self._pass_lock.locked()

    @property
    def last_run(self) -> Optional[datetime]:
        """Instant of the last completed pass."""
        return self._last_run

    @property
    def last_report(self) -> Optional[GenerationReport]:
        return self._last_report

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def last_trigger_skipped(self) -> bool:
        """Whether the last trigger found another pass in flight and did nothing."""
        return self._last_trigger_skipped

    async def start(self) -> None:
        """Start the background loop."""
        if self._running:
            logger.warning("Recurring expense scheduler already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(
            f"Started recurring expense scheduler (interval {self.interval_seconds}s, "
            f"initial check in {self.startup_delay_seconds}s)"
        )

    async def stop(self) -> None:
        """Stop the background loop. A pass already running in its thread finishes on its own."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Stopped recurring expense scheduler")

    async def trigger(self, now: Optional[datetime] = None) -> Optional[GenerationReport]:
        """
        Run one generation pass now.

        Returns the report, or None when the pass was skipped because another
        one is in flight, timed out, or failed outright.
        """
        now = now or self.clock()
        self._last_trigger_skipped = False

        try:
            report = await asyncio.wait_for(
                asyncio.to_thread(self._run_pass, now),
                timeout=self.pass_timeout_seconds,
            )
        except asyncio.TimeoutError:
            self._last_error = f"Generation pass timed out after {self.pass_timeout_seconds}s"
            logger.error(self._last_error)
            return None
        except Exception as e:
            self._last_error = str(e)
            logger.exception("Recurring expense generation pass failed")
            return None

        if report is None:
            self._last_trigger_skipped = True
            return None

        self._last_run = report.ran_at
        self._last_report = report
        self._last_error = report.error
        return report

    def _run_pass(self, now: datetime) -> Optional[GenerationReport]:
        # The lock is held by the worker thread, so a pass abandoned by a
        # timeout still blocks new passes until it really finishes.
        if not self._pass_lock.acquire(blocking=False):
            logger.warning("Previous generation pass still running, skipping tick")
            return None

        try:
            db = self.session_factory()
            try:
                return run_once(SqlRecurringExpenseStore(db), now)
            finally:
                db.close()
        finally:
            self._pass_lock.release()

    async def _run_loop(self) -> None:
        """Main scheduler loop."""
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.interval_seconds

        await asyncio.sleep(self.startup_delay_seconds)
        logger.info("Running initial recurring expense check")
        await self.trigger()

        while self._running:
            # Ticks missed while a pass was running are dropped, not queued
            while next_tick <= loop.time():
                next_tick += self.interval_seconds
            await asyncio.sleep(next_tick - loop.time())

            logger.debug("Running scheduled recurring expense check")
            await self.trigger()


# Global scheduler instance
scheduler = RecurringExpenseScheduler()

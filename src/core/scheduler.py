"""Daily trigger for the reminder pass.

The scheduler holds no business state. It turns a wall-clock time into one
call of the pass per day and refuses to start a pass while another is still
in flight.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from core.config import ScheduleConfig
from core.models import RunSummary

LOGGER = logging.getLogger(__name__)

JOB_ID = "daily_reminder_pass"

RunPass = Callable[[date], Awaitable[RunSummary]]


class ReminderScheduler:
    """Runs the reminder pass once per calendar day at a fixed local time."""

    def __init__(
        self,
        run_pass: RunPass,
        config: ScheduleConfig,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._run_pass = run_pass
        self._config = config
        self._clock = clock or (lambda: datetime.now(config.timezone))
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def build_trigger(self) -> CronTrigger:
        return CronTrigger(
            hour=self._config.hour,
            minute=self._config.minute,
            timezone=self._config.timezone,
        )

    def today_for(self, moment: datetime) -> date:
        """Calendar day of ``moment`` in the configured timezone."""

        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=self._config.timezone)
        return moment.astimezone(self._config.timezone).date()

    def start(self, event_loop=None) -> None:
        """Register the daily job and start the underlying APScheduler."""

        if self._scheduler is not None:
            LOGGER.info("Reminder scheduler already running, skipping start")
            return

        scheduler = AsyncIOScheduler(timezone=self._config.timezone, event_loop=event_loop)
        scheduler.add_job(
            self._fire,
            trigger=self.build_trigger(),
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self._config.misfire_grace_seconds,
        )
        scheduler.start()
        self._scheduler = scheduler
        LOGGER.info(
            "Reminder scheduler started: daily at %02d:%02d (%s)",
            self._config.hour,
            self._config.minute,
            self._config.timezone,
        )

    def shutdown(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        LOGGER.info("Reminder scheduler stopped")

    def next_run_time(self) -> Optional[datetime]:
        if self._scheduler is None:
            return None
        job = self._scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None

    def scheduled_day(self, now: datetime) -> date:
        """Day of the latest nominal fire time within the misfire grace window.

        A run delayed past midnight still belongs to the day it was scheduled
        for, so every day is classified exactly once.
        """

        if now.tzinfo is None:
            now = now.replace(tzinfo=self._config.timezone)
        window_start = now - timedelta(seconds=self._config.misfire_grace_seconds)
        fire_time = self.build_trigger().get_next_fire_time(None, window_start)
        if fire_time is not None and fire_time <= now:
            return self.today_for(fire_time)
        return self.today_for(now)

    async def _fire(self) -> None:
        day = self.scheduled_day(self._clock())
        LOGGER.info("Scheduled reminder pass triggered for %s", day.isoformat())
        await self.trigger(day)

    async def trigger(self, today: Optional[date] = None) -> Optional[RunSummary]:
        """Run the pass now, or return None when a pass is already running.

        Also the manual entry point used for operational checks.
        """

        if self._in_flight:
            LOGGER.warning("Reminder pass still in flight, dropping trigger")
            return None

        self._in_flight = True
        try:
            day = today or self.today_for(self._clock())
            return await self._run_pass(day)
        finally:
            self._in_flight = False

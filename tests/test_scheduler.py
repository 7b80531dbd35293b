from __future__ import annotations

import asyncio
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from core.config import ScheduleConfig
from core.models import RunSummary
from core.scheduler import JOB_ID, ReminderScheduler

TOKYO = ZoneInfo("Asia/Tokyo")


def _config(hour: int = 9, minute: int = 0) -> ScheduleConfig:
    return ScheduleConfig(hour=hour, minute=minute, timezone=TOKYO, misfire_grace_seconds=3600)


def _summary(day: date) -> RunSummary:
    return RunSummary(day=day, tenants_checked=0, read_errors=[], events=[], reports=[])


class RecordingPass:
    def __init__(self) -> None:
        self.days: list[date] = []

    async def __call__(self, day: date) -> RunSummary:
        self.days.append(day)
        return _summary(day)


def test_trigger_uses_local_calendar_day_of_clock() -> None:
    run_pass = RecordingPass()
    scheduler = ReminderScheduler(
        run_pass,
        _config(),
        clock=lambda: datetime(2024, 3, 7, 9, 0, tzinfo=TOKYO),
    )

    summary = asyncio.run(scheduler.trigger())

    assert summary.day == date(2024, 3, 7)
    assert run_pass.days == [date(2024, 3, 7)]


def test_delayed_run_keeps_the_same_day() -> None:
    run_pass = RecordingPass()
    # Nominal 09:00 run that only got to execute at 09:47.
    scheduler = ReminderScheduler(
        run_pass,
        _config(),
        clock=lambda: datetime(2024, 3, 7, 9, 47, 12, tzinfo=TOKYO),
    )
    asyncio.run(scheduler.trigger())
    assert run_pass.days == [date(2024, 3, 7)]


def test_today_normalizes_to_configured_zone() -> None:
    scheduler = ReminderScheduler(RecordingPass(), _config())

    # 16:00 UTC on the 6th is already 01:00 on the 7th in Tokyo.
    assert scheduler.today_for(datetime(2024, 3, 6, 16, 0, tzinfo=timezone.utc)) == date(2024, 3, 7)
    assert scheduler.today_for(datetime(2024, 3, 6, 14, 59, tzinfo=timezone.utc)) == date(2024, 3, 6)
    assert scheduler.today_for(datetime(2024, 3, 7, 23, 59)) == date(2024, 3, 7)


def test_explicit_day_overrides_clock() -> None:
    run_pass = RecordingPass()
    scheduler = ReminderScheduler(run_pass, _config(), clock=lambda: datetime(2024, 3, 7, tzinfo=TOKYO))

    asyncio.run(scheduler.trigger(date(2024, 1, 1)))

    assert run_pass.days == [date(2024, 1, 1)]


def test_trigger_while_in_flight_is_dropped() -> None:
    calls: list[date] = []

    async def _run() -> None:
        gate = asyncio.Event()

        async def slow_pass(day: date) -> RunSummary:
            calls.append(day)
            await gate.wait()
            return _summary(day)

        scheduler = ReminderScheduler(slow_pass, _config(), clock=lambda: datetime(2024, 3, 7, 9, tzinfo=TOKYO))
        first = asyncio.create_task(scheduler.trigger())
        await asyncio.sleep(0)
        assert scheduler.in_flight

        assert await scheduler.trigger() is None

        gate.set()
        summary = await first
        assert summary is not None
        assert not scheduler.in_flight

        # A later trigger runs normally once the previous pass finished.
        assert await scheduler.trigger() is not None

    asyncio.run(_run())
    assert len(calls) == 2


def test_in_flight_flag_clears_after_failure() -> None:
    async def failing_pass(day: date) -> RunSummary:
        raise RuntimeError("database locked")

    scheduler = ReminderScheduler(failing_pass, _config(), clock=lambda: datetime(2024, 3, 7, tzinfo=TOKYO))

    async def _run() -> None:
        try:
            await scheduler.trigger()
        except RuntimeError:
            pass
        assert not scheduler.in_flight

    asyncio.run(_run())


def test_cron_trigger_fires_daily_at_configured_time() -> None:
    trigger = ReminderScheduler(RecordingPass(), _config(9, 0)).build_trigger()

    before = datetime(2024, 3, 7, 8, 0, tzinfo=TOKYO)
    assert trigger.get_next_fire_time(None, before) == datetime(2024, 3, 7, 9, 0, tzinfo=TOKYO)

    after = datetime(2024, 3, 7, 9, 0, 1, tzinfo=TOKYO)
    assert trigger.get_next_fire_time(None, after) == datetime(2024, 3, 8, 9, 0, tzinfo=TOKYO)


def test_start_registers_single_daily_job() -> None:
    async def _run() -> None:
        scheduler = ReminderScheduler(RecordingPass(), _config(9, 30))
        scheduler.start()
        try:
            next_run = scheduler.next_run_time()
            assert next_run is not None
            local = next_run.astimezone(TOKYO)
            assert (local.hour, local.minute) == (9, 30)

            # Starting twice is a no-op.
            scheduler.start()
        finally:
            scheduler.shutdown()
        assert scheduler.next_run_time() is None

    asyncio.run(_run())


def test_run_delayed_past_midnight_keeps_scheduled_day() -> None:
    run_pass = RecordingPass()
    # 23:30 run that only got to execute at 00:10, inside the grace window.
    scheduler = ReminderScheduler(
        run_pass,
        _config(23, 30),
        clock=lambda: datetime(2024, 3, 8, 0, 10, tzinfo=TOKYO),
    )

    asyncio.run(scheduler._fire())

    assert run_pass.days == [date(2024, 3, 7)]


def test_scheduled_day_on_time_and_outside_grace() -> None:
    scheduler = ReminderScheduler(RecordingPass(), _config(23, 30))

    assert scheduler.scheduled_day(datetime(2024, 3, 7, 23, 30, tzinfo=TOKYO)) == date(2024, 3, 7)
    assert scheduler.scheduled_day(datetime(2024, 3, 8, 0, 29, tzinfo=TOKYO)) == date(2024, 3, 7)
    # No nominal fire time in the last hour: fall back to the clock's day.
    assert scheduler.scheduled_day(datetime(2024, 3, 8, 1, 0, tzinfo=TOKYO)) == date(2024, 3, 8)


def test_consecutive_delayed_runs_classify_each_day_once() -> None:
    moments = iter(
        [
            datetime(2024, 3, 8, 0, 10, tzinfo=TOKYO),
            datetime(2024, 3, 8, 23, 30, 5, tzinfo=TOKYO),
        ]
    )
    run_pass = RecordingPass()
    scheduler = ReminderScheduler(run_pass, _config(23, 30), clock=lambda: next(moments))

    async def _run() -> None:
        await scheduler._fire()
        await scheduler._fire()

    asyncio.run(_run())

    assert run_pass.days == [date(2024, 3, 7), date(2024, 3, 8)]


def test_registered_job_reaches_run_pass() -> None:
    run_pass = RecordingPass()

    async def _run() -> None:
        scheduler = ReminderScheduler(
            run_pass,
            _config(9, 0),
            clock=lambda: datetime(2024, 3, 7, 9, 0, 2, tzinfo=TOKYO),
        )
        scheduler.start()
        try:
            job = scheduler._scheduler.get_job(JOB_ID)
            assert job.max_instances == 1
            assert job.coalesce is True
            await job.func()
        finally:
            scheduler.shutdown()

    asyncio.run(_run())
    assert run_pass.days == [date(2024, 3, 7)]

"""
Cron scheduling on the asyncio event loop

Five-field cron expressions are parsed with Celery's crontab; the jobs run
in-process as asyncio tasks, no broker involved.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Optional
from zoneinfo import ZoneInfo

from celery.schedules import crontab, ParseException

logger = logging.getLogger(__name__)

STATUS_SCHEDULED = "scheduled"
STATUS_RUNNING = "running"
STATUS_STOPPED = "stopped"


@dataclass
class ScheduleOptions:
    """Options accepted by schedule()"""
    scheduled: bool = True
    timezone: Optional[str] = None


def parse_expression(expression: str, timezone: Optional[str] = None) -> crontab:
    """
    Turn "m h dom mon dow" into a crontab

    Raises:
        ValueError: wrong field count or a field Celery cannot parse
    """
    fields = expression.split()
    if len(fields) != 5:
        raise ValueError(f"Cron expression needs 5 fields, got {len(fields)}: {expression!r}")
    minute, hour, day_of_month, month_of_year, day_of_week = fields

    zone = ZoneInfo(timezone) if timezone else None
    nowfun = (lambda: datetime.now(zone)) if zone else None
    try:
        schedule = crontab(
            minute=minute,
            hour=hour,
            day_of_month=day_of_month,
            month_of_year=month_of_year,
            day_of_week=day_of_week,
            nowfun=nowfun,
        )
    except (ParseException, KeyError) as e:
        raise ValueError(f"Invalid cron expression {expression!r}: {e}") from e
    return schedule


def validate(expression: str) -> bool:
    """True when the expression parses"""
    try:
        parse_expression(expression)
    except ValueError:
        return False
    return True


class ScheduledTask:
    """A recurring job bound to one cron expression"""

    def __init__(self, expression: str, func: Callable[[], Any], options: Optional[ScheduleOptions] = None):
        self.expression = expression
        self.func = func
        self.options = options or ScheduleOptions()
        self.schedule = parse_expression(expression, self.options.timezone)
        self._task: Optional[asyncio.Task] = None
        self._running_job = False
        self.last_run_at: Optional[datetime] = None

    def _now(self) -> datetime:
        return self.schedule.maybe_make_aware(self.schedule.now())

    def seconds_until_next_run(self) -> float:
        """Delay until the next matching minute"""
        reference = self.last_run_at or self._now()
        remaining = self.schedule.remaining_estimate(reference)
        if remaining <= timedelta(0):
            return 0.0
        return remaining.total_seconds()

    async def _run_once(self):
        self._running_job = True
        try:
            result = self.func()
            if inspect.isawaitable(result):
                await result
        finally:
            self._running_job = False
            self.last_run_at = self._now()

    async def _loop(self):
        while True:
            await asyncio.sleep(self.seconds_until_next_run())
            try:
                await self._run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # A failed run must not end the schedule
                logger.exception(f"Scheduled job {self.expression!r} failed: {str(e)}")

    def start(self):
        """Begin firing; a no-op if already started"""
        if self._task is None or self._task.done():
            self.last_run_at = None
            self._task = asyncio.get_running_loop().create_task(self._loop())
            logger.info(f"Scheduled job {self.expression!r} started")

    def stop(self):
        """Stop firing; an in-flight run is cancelled"""
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.info(f"Scheduled job {self.expression!r} stopped")

    def get_status(self) -> str:
        if self._task is None or self._task.done():
            return STATUS_STOPPED
        if self._running_job:
            return STATUS_RUNNING
        return STATUS_SCHEDULED


def schedule(expression: str, func: Callable[[], Any], options: Optional[ScheduleOptions] = None) -> ScheduledTask:
    """
    Create a ScheduledTask, started immediately unless options.scheduled is False

    Starting requires a running event loop.
    """
    task = ScheduledTask(expression, func, options)
    if task.options.scheduled:
        task.start()
    return task

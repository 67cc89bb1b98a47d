from __future__ import annotations

import logging
from typing import Awaitable
from typing import Callable
from typing import Iterable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from planning.models import ReminderRule

log = logging.getLogger(__name__)

MAINTENANCE_JOB_ID = "planning:maintenance"

# Crontab numbers days from Sunday (0 or 7); APScheduler numbers them from Monday.
CRONTAB_DAY_NAMES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


def crontab_day_of_week(field: str) -> str:
    """Rewrite a numeric crontab day-of-week field as APScheduler day names."""
    days: set[int] = set()
    for part in field.split(","):
        base, _, step_text = part.partition("/")
        try:
            step = int(step_text) if step_text else 1
            if base == "*":
                start, end = 0, 6
            elif "-" in base:
                first, last = base.split("-", 1)
                start, end = int(first), int(last)
            else:
                start = int(base)
                end = 6 if step_text else start
        except ValueError as exc:
            raise ValueError(f"Invalid day-of-week field: {field!r}") from exc
        if step < 1 or not 0 <= start <= end <= 7:
            raise ValueError(f"Invalid day-of-week field: {field!r}")
        days.update(n % 7 for n in range(start, end + 1, step))
    return ",".join(CRONTAB_DAY_NAMES[n] for n in sorted(days))


def crontab_trigger(expression: str, timezone_name: str) -> CronTrigger:
    values = expression.split()
    if len(values) != 5:
        raise ValueError(f"Wrong number of fields; got {len(values)}, expected 5")
    minute, hour, day, month, day_of_week = values
    if any(ch.isdigit() for ch in day_of_week):
        day_of_week = crontab_day_of_week(day_of_week)
    return CronTrigger(
        minute=minute,
        hour=hour,
        day=day,
        month=month,
        day_of_week=day_of_week,
        timezone=timezone_name,
    )


def reminder_job_id(rule: ReminderRule) -> str:
    return f"reminder:{rule.trash_type}"


def guarded(name: str, func: Callable[..., Awaitable[object]]) -> Callable[..., Awaitable[None]]:
    async def runner(*args, **kwargs) -> None:
        try:
            await func(*args, **kwargs)
        except Exception:
            log.exception("[Scheduler] job %s failed", name)

    return runner


class BotScheduler:
    """Cron timers for planning maintenance and reminders, all in one fixed timezone."""

    def __init__(self, *, timezone_name: str, scheduler: AsyncIOScheduler | None = None) -> None:
        self.timezone_name = timezone_name
        self.scheduler = scheduler or AsyncIOScheduler(timezone=timezone_name)
        self._maintenance_job = None
        self._reminder_jobs: list = []

    @property
    def running(self) -> bool:
        return bool(self.scheduler.running)

    def start(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()
            log.info("[Scheduler] started (timezone=%s)", self.timezone_name)

    def shutdown(self) -> None:
        self._maintenance_job = None
        self._reminder_jobs = []
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            log.info("[Scheduler] stopped")

    def schedule_planning_maintenance(self, func: Callable[[], Awaitable[object]], cron_expression: str):
        if self._maintenance_job is not None:
            self._maintenance_job.remove()
            self._maintenance_job = None

        trigger = crontab_trigger(cron_expression, self.timezone_name)
        self._maintenance_job = self.scheduler.add_job(
            guarded("planning maintenance", func),
            trigger=trigger,
            id=MAINTENANCE_JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        log.info("[Scheduler] planning maintenance scheduled: %s", cron_expression)
        return self._maintenance_job

    def schedule_reminders(self, rules: Iterable[ReminderRule], func: Callable[[ReminderRule], Awaitable[object]]) -> list:
        for job in self._reminder_jobs:
            job.remove()
        self._reminder_jobs = []

        for rule in rules:
            trigger = CronTrigger(
                day_of_week=rule.cron_day_of_week,
                hour=rule.hour,
                minute=0,
                timezone=self.timezone_name,
            )
            job = self.scheduler.add_job(
                guarded(f"reminder {rule.trash_type}", func),
                trigger=trigger,
                args=[rule],
                id=reminder_job_id(rule),
                replace_existing=True,
            )
            self._reminder_jobs.append(job)
            log.info("[Scheduler] reminder %s scheduled: %s %02d:00", rule.trash_type, rule.weekday, rule.hour)
        return list(self._reminder_jobs)

from __future__ import annotations

import re
from datetime import date
from datetime import timedelta

from misc.local_time import format_day_label
from planning.models import PlanningDay


_WHITESPACE = re.compile(r"\s+")


def slugify_label(label: str) -> str:
    return _WHITESPACE.sub("-", (label or "").strip().lower())


def day_slug(d: date) -> str:
    return slugify_label(format_day_label(d))


def planning_window(today: date, days_ahead: int) -> list[PlanningDay]:
    """
    Return the rolling window of planning days starting at today.

    Entry i is today + i days for i in [0, days_ahead). The result depends only
    on the two arguments, so two calls with the same inputs are identical.
    """
    if days_ahead < 0:
        raise ValueError(f"days_ahead must be >= 0, got {days_ahead}")
    out: list[PlanningDay] = []
    for offset in range(int(days_ahead)):
        d = today + timedelta(days=offset)
        label = format_day_label(d)
        out.append(PlanningDay(label=label, slug=slugify_label(label), date=d))
    return out


def desired_slugs(window: list[PlanningDay]) -> set[str]:
    return {day.slug for day in window}

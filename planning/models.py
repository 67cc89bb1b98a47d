from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from datetime import date
from typing import Any


WEEKDAY_KEYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(frozen=True, slots=True)
class PlanningDay:
    label: str
    slug: str
    date: date


@dataclass(frozen=True, slots=True)
class ReminderRule:
    trash_type: str
    weekday: str
    hour: int
    relevant_slots: tuple[str, ...]

    def __post_init__(self) -> None:
        if self.weekday not in WEEKDAY_KEYS:
            raise ValueError(f"Invalid weekday: {self.weekday!r}")
        if not 0 <= int(self.hour) <= 23:
            raise ValueError(f"Invalid hour: {self.hour} (expected 0..23)")

    @property
    def cron_day_of_week(self) -> str:
        # APScheduler's day_of_week accepts three-letter english names.
        return self.weekday[:3]

    @classmethod
    def from_mapping(cls, raw: dict[str, Any]) -> "ReminderRule":
        trash_type = str(raw.get("trash_type") or "").strip().lower()
        if not trash_type:
            raise ValueError("Reminder rule is missing trash_type")
        weekday = str(raw.get("weekday") or "").strip().lower()
        slots = raw.get("slots")
        if slots is None:
            slots = ()
        elif not isinstance(slots, (list, tuple)):
            raise ValueError(f"Reminder rule {trash_type!r}: slots must be a list, got {slots!r}")
        hour = raw.get("hour", 20)
        if isinstance(hour, bool):
            raise ValueError(f"Reminder rule {trash_type!r}: invalid hour {hour!r}")
        try:
            hour = int(hour)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Reminder rule {trash_type!r}: invalid hour {hour!r}") from exc
        return cls(
            trash_type=trash_type,
            weekday=weekday,
            hour=hour,
            relevant_slots=tuple(str(s) for s in slots),
        )


@dataclass(slots=True)
class ReconcilePlan:
    to_delete: list[Any] = field(default_factory=list)
    to_create: list[PlanningDay] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not self.to_delete and not self.to_create


@dataclass(slots=True)
class ReconcileResult:
    deleted: list[str] = field(default_factory=list)
    created: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.deleted or self.created)

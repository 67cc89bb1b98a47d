from __future__ import annotations

"""French wall-clock rendering for everything a member reads: planning day labels, SMS times and log lines."""

from datetime import date as date_value
from datetime import datetime
from datetime import timezone
from zoneinfo import ZoneInfo
from zoneinfo import ZoneInfoNotFoundError


FRENCH_WEEKDAYS = ("lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche")
FRENCH_MONTHS = (
    "janvier",
    "février",
    "mars",
    "avril",
    "mai",
    "juin",
    "juillet",
    "août",
    "septembre",
    "octobre",
    "novembre",
    "décembre",
)


def require_timezone(timezone_name: str) -> ZoneInfo:
    clean = str(timezone_name or "").strip()
    if not clean:
        raise ValueError("Unknown timezone_name: ''")
    try:
        return ZoneInfo(clean)
    except ZoneInfoNotFoundError as exc:
        raise ValueError(f"Unknown timezone_name: {clean}") from exc


def _to_local(dt: datetime | None, timezone_name: str) -> datetime:
    tz = require_timezone(timezone_name)
    if dt is None:
        return datetime.now(tz)
    if dt.tzinfo is None or dt.utcoffset() is None:
        raise ValueError("dt must be timezone-aware")
    return dt.astimezone(tz)


def local_today(timezone_name: str, now: datetime | None = None) -> date_value:
    return _to_local(now, timezone_name).date()


def format_day_label(d: date_value) -> str:
    # e.g. "lundi 15 janvier"
    return f"{FRENCH_WEEKDAYS[d.weekday()]} {d.day} {FRENCH_MONTHS[d.month - 1]}"


def format_clock(dt: datetime | None, timezone_name: str) -> str:
    local = _to_local(dt, timezone_name)
    return f"{local.hour:02d}:{local.minute:02d}"


def format_log_timestamp(dt: datetime | None, timezone_name: str) -> str:
    local = _to_local(dt, timezone_name)
    return (
        f"{local.day} {FRENCH_MONTHS[local.month - 1]} {local.year} à "
        f"{local.hour:02d}:{local.minute:02d}:{local.second:02d}"
    )


def utc_now() -> datetime:
    return datetime.now(timezone.utc)

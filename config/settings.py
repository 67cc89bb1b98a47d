from __future__ import annotations

"""Process settings, read once at startup from the environment (and an optional planning YAML file)."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from typing import Mapping
from zoneinfo import ZoneInfo
from zoneinfo import ZoneInfoNotFoundError

import yaml
from dotenv import load_dotenv

from config.defaults import DEFAULT_GATE_LOG_FILE
from config.defaults import DEFAULT_MEMBER_ROLE_NAME
from config.defaults import DEFAULT_PLANNING_CATEGORY
from config.defaults import DEFAULT_PLANNING_CRON
from config.defaults import DEFAULT_PLANNING_DAYS_AHEAD
from config.defaults import DEFAULT_REMINDER_HISTORY_LIMIT
from config.defaults import DEFAULT_REMINDER_RULES
from config.defaults import DEFAULT_RULES_LOG_FILE
from config.defaults import DEFAULT_STATUS_CLOSED_IMAGE
from config.defaults import DEFAULT_STATUS_OPEN_IMAGE
from config.defaults import DEFAULT_TIME_SLOTS
from config.defaults import DEFAULT_TIMEZONE
from config.defaults import DEFAULT_TRASH_CHANNEL_NAME
from config.defaults import DEFAULT_TRASH_PARENT_CATEGORY
from config.defaults import DEFAULT_TWILIO_REGION
from config.defaults import GATE_NUMBER_ENV_KEYS
from jobs.scheduler import crontab_trigger
from planning.models import ReminderRule

log = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class TwilioSettings:
    account_sid: str
    auth_token: str
    from_number: str
    gate_numbers: tuple[str, ...]
    region: str = DEFAULT_TWILIO_REGION


@dataclass(frozen=True, slots=True)
class Settings:
    discord_token: str
    guild_id: int
    client_id: int | None
    timezone: str
    planning_category: str
    planning_days_ahead: int
    planning_cron: str
    time_slots: tuple[str, ...]
    reminder_rules: tuple[ReminderRule, ...]
    reminder_history_limit: int
    trash_channel_name: str
    trash_parent_category: str
    status_images: Mapping[str, str]
    twilio: TwilioSettings | None
    member_role_name: str
    rules_log_file: str
    gate_log_file: str


def load_env_files(base_dir: str | Path | None = None) -> Path | None:
    """Load the first existing env file for APP_ENV; process variables keep precedence."""
    root = Path(base_dir) if base_dir is not None else Path.cwd()
    app_env = (os.getenv("APP_ENV") or "development").strip() or "development"
    for filename in (f".env.{app_env}.local", f".env.{app_env}", ".env.local", ".env"):
        path = root / filename
        if path.exists():
            load_dotenv(path, override=False)
            return path
    return None


def _get(env: Mapping[str, str], key: str) -> str:
    return (env.get(key) or "").strip()


def _required(env: Mapping[str, str], key: str) -> str:
    value = _get(env, key)
    if not value:
        raise ConfigError(f"Missing required environment variable: {key}")
    return value


def _parse_int(value: str, default: int) -> int:
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        log.warning("[Config] invalid integer %r; falling back to %s", value, default)
        return default


def _require_timezone(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Unknown timezone: {name}") from exc
    return name


def _require_cron(expression: str, timezone_name: str) -> str:
    try:
        crontab_trigger(expression, timezone_name)
    except ValueError as exc:
        raise ConfigError(f"Invalid PLANNING_CRON expression {expression!r}: {exc}") from exc
    return expression


def collect_gate_numbers(env: Mapping[str, str]) -> tuple[str, ...]:
    raw: list[str] = [_get(env, key) for key in GATE_NUMBER_ENV_KEYS]
    raw.extend(part.strip() for part in _get(env, "GATE_PHONE_NUMBERS").split(","))
    out: list[str] = []
    for number in raw:
        if number and number not in out:
            out.append(number)
    return tuple(out)


def build_twilio_settings(env: Mapping[str, str]) -> TwilioSettings | None:
    account_sid = _get(env, "TWILIO_ACCOUNT_SID")
    auth_token = _get(env, "TWILIO_AUTH_TOKEN")
    from_number = _get(env, "TWILIO_PHONE_NUMBER")
    if not account_sid or not auth_token or not from_number:
        return None
    return TwilioSettings(
        account_sid=account_sid,
        auth_token=auth_token,
        from_number=from_number,
        gate_numbers=collect_gate_numbers(env),
        region=_get(env, "TWILIO_REGION") or DEFAULT_TWILIO_REGION,
    )


def load_planning_file(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Planning config file not found: {path}")
    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ConfigError("Planning config file must contain a top-level mapping")
    return raw


def parse_time_slots(raw: dict[str, Any]) -> tuple[str, ...]:
    slots = raw.get("time_slots")
    if slots is None:
        return DEFAULT_TIME_SLOTS
    if not isinstance(slots, list) or not all(isinstance(s, str) and s.strip() for s in slots):
        raise ConfigError("time_slots must be a list of non-empty strings")
    return tuple(slots)


def parse_reminder_rules(raw: dict[str, Any]) -> tuple[ReminderRule, ...]:
    entries = raw.get("reminders")
    if entries is None:
        entries = DEFAULT_REMINDER_RULES
    if not isinstance(entries, (list, tuple)):
        raise ConfigError("reminders must be a list")
    rules: list[ReminderRule] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ConfigError(f"Invalid reminder entry: {entry!r}")
        try:
            rules.append(ReminderRule.from_mapping(entry))
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
    return tuple(rules)


def unknown_reminder_slots(rules: tuple[ReminderRule, ...], time_slots: tuple[str, ...]) -> list[tuple[str, str]]:
    known = set(time_slots)
    return [(rule.trash_type, slot) for rule in rules for slot in rule.relevant_slots if slot not in known]


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ

    guild_raw = _required(env, "DISCORD_GUILD_ID")
    try:
        guild_id = int(guild_raw)
    except ValueError as exc:
        raise ConfigError(f"DISCORD_GUILD_ID must be an integer, got {guild_raw!r}") from exc

    timezone_name = _require_timezone(_get(env, "APP_TIMEZONE") or DEFAULT_TIMEZONE)
    client_raw = _get(env, "DISCORD_CLIENT_ID")
    days_ahead = _parse_int(_get(env, "PLANNING_DAYS_AHEAD"), DEFAULT_PLANNING_DAYS_AHEAD)
    if days_ahead < 0:
        log.warning("[Config] PLANNING_DAYS_AHEAD=%s is negative; using 0", days_ahead)
        days_ahead = 0

    planning_file = _get(env, "PLANNING_CONFIG_FILE")
    planning_raw = load_planning_file(planning_file) if planning_file else {}
    time_slots = parse_time_slots(planning_raw)
    reminder_rules = parse_reminder_rules(planning_raw)
    for trash_type, slot in unknown_reminder_slots(reminder_rules, time_slots):
        log.warning("[Config] reminder %r watches slot %r which is not in the planning slot list", trash_type, slot)

    return Settings(
        discord_token=_required(env, "DISCORD_TOKEN"),
        guild_id=guild_id,
        client_id=_parse_int(client_raw, 0) or None,
        timezone=timezone_name,
        planning_category=_get(env, "PLANNING_CATEGORY") or DEFAULT_PLANNING_CATEGORY,
        planning_days_ahead=days_ahead,
        planning_cron=_require_cron(_get(env, "PLANNING_CRON") or DEFAULT_PLANNING_CRON, timezone_name),
        time_slots=time_slots,
        reminder_rules=reminder_rules,
        reminder_history_limit=max(1, _parse_int(_get(env, "REMINDER_HISTORY_LIMIT"), DEFAULT_REMINDER_HISTORY_LIMIT)),
        trash_channel_name=_get(env, "TRASH_CHANNEL_NAME") or DEFAULT_TRASH_CHANNEL_NAME,
        trash_parent_category=_get(env, "TRASH_PARENT_CATEGORY") or DEFAULT_TRASH_PARENT_CATEGORY,
        status_images={
            "Ouverte": _get(env, "GYM_STATUS_OPEN_IMAGE") or DEFAULT_STATUS_OPEN_IMAGE,
            "Fermée": _get(env, "GYM_STATUS_CLOSED_IMAGE") or DEFAULT_STATUS_CLOSED_IMAGE,
        },
        twilio=build_twilio_settings(env),
        member_role_name=_get(env, "MEMBER_ROLE_NAME") or DEFAULT_MEMBER_ROLE_NAME,
        rules_log_file=_get(env, "RULES_LOG_FILE") or DEFAULT_RULES_LOG_FILE,
        gate_log_file=_get(env, "GATE_LOG_FILE") or DEFAULT_GATE_LOG_FILE,
    )

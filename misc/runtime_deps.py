from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RuntimeDeps:
    # long-lived feature state, constructed once in bot.py
    status_manager: Any
    gate_service: Any
    rules_service: Any
    planning_service: Any


@dataclass(frozen=True)
class RuntimeBootDeps:
    guild_id: int
    scheduler: Any
    reminder_service: Any
    reminder_rules: tuple

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from typing import Callable

from misc.discord_gates import in_standard_text_channel


def _default_false(*args, **kwargs) -> bool:
    return False


@dataclass(frozen=True)
class CommandDeps:
    guild_id: int = 0
    status_manager: Any = None
    planning_service: Any = None
    rules_panel_factory: Callable | None = None


@dataclass(frozen=True)
class CommandGates:
    in_text_channel: Callable[[Any], bool] = in_standard_text_channel
    user_is_admin: Callable[[Any], bool] = _default_false

from __future__ import annotations

import asyncio
import importlib


class _DummyScheduler:
    def __init__(self):
        self.started = False

    def start(self):
        self.started = True

    def shutdown(self):
        self.started = False

    def schedule_planning_maintenance(self, func, cron_expression):
        return None

    def schedule_reminders(self, rules, func):
        return []


class _DummyService:
    async def handle_open_gate(self, interaction):
        return None

    async def handle_accept_rules(self, interaction):
        return None

    async def sync_planning_command(self):
        return None

    async def initialize(self):
        return None

    async def send_reminder(self, rule):
        return None


def _try_import_or_skip(module_name: str, pip_name: str | None = None) -> bool:
    try:
        importlib.import_module(module_name)
        return True
    except ModuleNotFoundError:
        install_name = pip_name or module_name
        print(
            f"Smoke wiring check skipped: missing dependency '{module_name}'. "
            f"Install requirements and retry (e.g. `pip install {install_name}` "
            f"or `pip install -e .`)."
        )
        return False


async def _check() -> None:
    import discord
    from discord.ext import commands

    from misc.adhoc_modules.rules_panel import build_rules_panel
    from misc.adhoc_modules.status_service import GymStatusManager
    from misc.runtime_wiring import wire_bot_runtime

    bot = commands.Bot(command_prefix="!", intents=discord.Intents.none())
    service = _DummyService()
    wire_bot_runtime(
        bot,
        guild_id=1234,
        status_manager=GymStatusManager(),
        gate_service=service,
        rules_service=service,
        planning_service=service,
        reminder_service=service,
        reminder_rules=(),
        scheduler=_DummyScheduler(),
        rules_panel_factory=build_rules_panel,
    )

    group = bot.tree.get_command("gym", guild=discord.Object(id=1234))
    if group is None:
        raise RuntimeError("Missing /gym command group")
    expected = {"status", "setup", "rules"}
    missing = sorted(expected - {c.name for c in group.commands})
    if missing:
        raise RuntimeError(f"Missing expected subcommands: {missing}")

    if getattr(bot, "on_ready", None) is None or getattr(bot, "on_interaction", None) is None:
        raise RuntimeError("Runtime events were not registered")


def _main() -> int:
    if not _try_import_or_skip("discord", "discord.py"):
        return 0
    asyncio.run(_check())
    print("Smoke wiring check passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())

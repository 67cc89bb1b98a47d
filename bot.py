import asyncio
import logging
import os
import sys

import discord
from discord.ext import commands

from config.defaults import DEFAULT_LOG_LEVEL
from config.settings import ConfigError
from config.settings import load_env_files
from config.settings import load_settings
from jobs.scheduler import BotScheduler
from misc.adhoc_modules.gate_service import GateService
from misc.adhoc_modules.rules_panel import RulesService
from misc.adhoc_modules.rules_panel import build_rules_panel
from misc.adhoc_modules.status_service import GymStatus
from misc.adhoc_modules.status_service import GymStatusManager
from misc.runtime_wiring import wire_bot_runtime
from planning.reconciler import PlanningService
from planning.reminders import ReminderService

log = logging.getLogger("gymbot")


def build_intents() -> discord.Intents:
    intents = discord.Intents.none()
    intents.guilds = True
    intents.guild_messages = True
    intents.guild_reactions = True
    intents.message_content = True
    intents.dm_messages = True
    return intents


def build_bot(settings) -> tuple[commands.Bot, BotScheduler]:
    bot = commands.Bot(
        command_prefix=commands.when_mentioned,
        intents=build_intents(),
        application_id=settings.client_id,
    )
    scheduler = BotScheduler(timezone_name=settings.timezone)

    status_manager = GymStatusManager(settings.status_images, GymStatus.CLOSED)
    gate_service = GateService(
        settings.twilio,
        timezone_name=settings.timezone,
        log_path=settings.gate_log_file,
    )
    rules_service = RulesService(
        member_role_name=settings.member_role_name,
        log_path=settings.rules_log_file,
        timezone_name=settings.timezone,
    )
    planning_service = PlanningService(
        bot,
        guild_id=settings.guild_id,
        category_name=settings.planning_category,
        days_ahead=settings.planning_days_ahead,
        time_slots=settings.time_slots,
        timezone_name=settings.timezone,
        maintenance_cron=settings.planning_cron,
        scheduler=scheduler,
    )
    reminder_service = ReminderService(
        bot,
        guild_id=settings.guild_id,
        planning_category=settings.planning_category,
        channel_name=settings.trash_channel_name,
        parent_category_name=settings.trash_parent_category,
        timezone_name=settings.timezone,
        history_limit=settings.reminder_history_limit,
    )

    wire_bot_runtime(
        bot,
        guild_id=settings.guild_id,
        status_manager=status_manager,
        gate_service=gate_service,
        rules_service=rules_service,
        planning_service=planning_service,
        reminder_service=reminder_service,
        reminder_rules=settings.reminder_rules,
        scheduler=scheduler,
        rules_panel_factory=build_rules_panel,
    )
    return bot, scheduler


async def run(settings) -> None:
    bot, scheduler = build_bot(settings)
    try:
        async with bot:
            await bot.start(settings.discord_token)
    finally:
        scheduler.shutdown()


def main() -> int:
    load_env_files()
    logging.basicConfig(
        level=getattr(logging, (os.getenv("LOG_LEVEL") or DEFAULT_LOG_LEVEL).strip().upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        settings = load_settings()
    except ConfigError as e:
        log.error("[CFG] %s", e)
        return 1

    log.info(
        "[CFG] guild=%s tz=%s category=%r days_ahead=%s cron=%r slots=%s reminders=%s gate=%s",
        settings.guild_id,
        settings.timezone,
        settings.planning_category,
        settings.planning_days_ahead,
        settings.planning_cron,
        len(settings.time_slots),
        len(settings.reminder_rules),
        "on" if settings.twilio else "off",
    )

    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        return 0
    except Exception:
        log.exception("Fatal error while running the bot")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

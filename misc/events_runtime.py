from __future__ import annotations

import logging
from typing import Awaitable
from typing import Callable

import discord
from discord import app_commands
from discord.ext import commands

from misc.adhoc_modules.rules_panel import ACCEPT_RULES_ID
from misc.adhoc_modules.status_service import GymStatus
from misc.adhoc_modules.status_service import StatusButton
from misc.discord_gates import member_display_name
from misc.discord_gates import send_ephemeral
from misc.runtime_deps import RuntimeBootDeps
from misc.runtime_deps import RuntimeDeps

log = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Une erreur est survenue. Réessayez plus tard ou contactez un administrateur."

ButtonHandler = Callable[[discord.Interaction], Awaitable[None]]


async def update_gym_status(interaction: discord.Interaction, status_manager, status: GymStatus) -> None:
    if not status_manager.has_status_message:
        await interaction.response.send_message(
            "Aucun message de statut trouvé. Utilisez `/gym status` pour le publier.",
            ephemeral=True,
        )
        return

    status_manager.update_status(status, member_display_name(interaction))
    await status_manager.refresh_status_message()
    await send_ephemeral(interaction, f"Statut mis à jour: {status.value}.")


def build_button_routes(deps: RuntimeDeps) -> dict[str, ButtonHandler]:
    async def open_gym(interaction):
        await update_gym_status(interaction, deps.status_manager, GymStatus.OPEN)

    async def close_gym(interaction):
        await update_gym_status(interaction, deps.status_manager, GymStatus.CLOSED)

    return {
        StatusButton.OPEN: open_gym,
        StatusButton.CLOSE: close_gym,
        StatusButton.GATE: deps.gate_service.handle_open_gate,
        ACCEPT_RULES_ID: deps.rules_service.handle_accept_rules,
    }


async def reply_failure(interaction: discord.Interaction) -> None:
    try:
        await send_ephemeral(interaction, GENERIC_FAILURE_MESSAGE)
    except discord.HTTPException:
        log.warning("[Router] could not send the failure notice", exc_info=True)


async def route_component(interaction: discord.Interaction, routes: dict[str, ButtonHandler]) -> bool:
    custom_id = str((interaction.data or {}).get("custom_id") or "")
    handler = routes.get(custom_id)
    if handler is None:
        log.debug("[Router] unhandled button: %s", custom_id)
        return False
    try:
        await handler(interaction)
    except Exception:
        log.exception("[Router] button %s failed", custom_id)
        await reply_failure(interaction)
    return True


async def start_background_work(bot: commands.Bot, deps: RuntimeDeps, boot: RuntimeBootDeps) -> None:
    try:
        synced = await bot.tree.sync(guild=discord.Object(id=boot.guild_id))
        log.info("[Router] %s slash command(s) synced to guild %s", len(synced), boot.guild_id)
    except discord.HTTPException:
        log.exception("[Router] slash command sync failed")

    boot.scheduler.start()
    try:
        await deps.planning_service.initialize()
    except Exception:
        log.exception("[Planning] initialization failed")

    boot.scheduler.schedule_reminders(boot.reminder_rules, boot.reminder_service.send_reminder)


def register_runtime_events(
    bot: commands.Bot,
    *,
    deps: RuntimeDeps,
    boot: RuntimeBootDeps,
) -> None:
    routes = build_button_routes(deps)

    @bot.event
    async def on_ready():
        log.info("Connected as %s", bot.user)
        # on_ready fires again after every reconnect.
        if getattr(bot, "_gym_started", False):
            return
        bot._gym_started = True
        await start_background_work(bot, deps, boot)

    @bot.event
    async def on_interaction(interaction: discord.Interaction):
        if interaction.type != discord.InteractionType.component:
            return
        await route_component(interaction, routes)

    @bot.tree.error
    async def on_app_command_error(interaction: discord.Interaction, error: app_commands.AppCommandError):
        log.error("[Router] command failed: %s", error, exc_info=error)
        await reply_failure(interaction)

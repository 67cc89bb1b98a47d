from __future__ import annotations

import logging
from typing import Any
from typing import Callable
from typing import Iterable

import discord

from config.defaults import AFFIRMATIVE_EMOJI
from config.defaults import PLANNING_HEADER_COLOUR
from misc.local_time import local_today
from planning.models import PlanningDay
from planning.models import ReconcilePlan
from planning.models import ReconcileResult
from planning.window import desired_slugs
from planning.window import planning_window

log = logging.getLogger(__name__)


def is_text_channel(channel: Any) -> bool:
    return getattr(channel, "type", None) == discord.ChannelType.text


def is_category(channel: Any) -> bool:
    return getattr(channel, "type", None) == discord.ChannelType.category


def find_text_channel(channels: Iterable[Any], name: str, category_id: int | None) -> Any | None:
    for channel in channels:
        if is_text_channel(channel) and channel.name == name and channel.category_id == category_id:
            return channel
    return None


def plan_reconciliation(existing_channels: Iterable[Any], category_id: int, window: list[PlanningDay]) -> ReconcilePlan:
    """Compute the deletes and creates that bring the category's text channels to exactly the window slugs."""
    wanted = desired_slugs(window)
    under_category = [c for c in existing_channels if is_text_channel(c) and c.category_id == category_id]
    present = {c.name for c in under_category}
    return ReconcilePlan(
        to_delete=[c for c in under_category if c.name not in wanted],
        to_create=[day for day in window if day.slug not in present],
    )


def build_planning_header(label: str) -> discord.Embed:
    return discord.Embed(
        title=f"Planning pour {label}",
        description=f"Réagissez avec {AFFIRMATIVE_EMOJI} sur un créneau pour indiquer votre présence.",
        colour=discord.Colour(PLANNING_HEADER_COLOUR),
    )


async def seed_planning_channel(channel, day: PlanningDay, time_slots: Iterable[str]) -> None:
    await channel.send(embed=build_planning_header(day.label))
    for slot in time_slots:
        message = await channel.send(slot)
        await message.add_reaction(AFFIRMATIVE_EMOJI)


class PlanningService:
    def __init__(
        self,
        bot,
        *,
        guild_id: int,
        category_name: str,
        days_ahead: int,
        time_slots: tuple[str, ...],
        timezone_name: str,
        maintenance_cron: str,
        scheduler=None,
        today_func: Callable[[], Any] | None = None,
    ) -> None:
        self.bot = bot
        self.guild_id = int(guild_id)
        self.category_name = category_name
        self.days_ahead = int(days_ahead)
        self.time_slots = tuple(time_slots)
        self.timezone_name = timezone_name
        self.maintenance_cron = maintenance_cron
        self.scheduler = scheduler
        self.today_func = today_func or (lambda: local_today(self.timezone_name))

    async def fetch_guild(self):
        guild = self.bot.get_guild(self.guild_id)
        if guild is None:
            guild = await self.bot.fetch_guild(self.guild_id)
        return guild

    async def ensure_category(self, guild):
        channels = await guild.fetch_channels()
        for channel in channels:
            if is_category(channel) and channel.name == self.category_name:
                return channel
        created = await guild.create_category(self.category_name, reason="Catégorie de planning")
        log.info("[Planning] category %r created", self.category_name)
        return created

    async def sync_planning(self, guild, category, today=None) -> ReconcileResult:
        window = planning_window(today or self.today_func(), self.days_ahead)
        snapshot = await guild.fetch_channels()
        plan = plan_reconciliation(snapshot, category.id, window)
        result = ReconcileResult()

        for channel in plan.to_delete:
            log.info("[Planning] deleting out-of-window channel %s", channel.name)
            try:
                await channel.delete(reason="Salon de planning hors fenêtre autorisée")
            except discord.HTTPException:
                log.exception("[Planning] could not delete channel %s", channel.name)
                result.failed.append(channel.name)
                continue
            result.deleted.append(channel.name)

        for day in plan.to_create:
            if find_text_channel(getattr(guild, "text_channels", []), day.slug, category.id) is not None:
                log.info("[Planning] channel %s appeared meanwhile; skipping", day.slug)
                continue
            log.info("[Planning] creating channel %s", day.slug)
            try:
                channel = await guild.create_text_channel(day.slug, category=category, reason="Planning")
            except discord.HTTPException:
                log.exception("[Planning] could not create channel %s", day.slug)
                result.failed.append(day.slug)
                continue
            result.created.append(day.slug)
            try:
                await seed_planning_channel(channel, day, self.time_slots)
            except discord.HTTPException:
                # Left partially seeded; later runs see it as existing.
                log.exception("[Planning] seeding of %s did not complete", day.slug)
                result.failed.append(day.slug)

        if result.changed or result.failed:
            log.info(
                "[Planning] sync done created=%s deleted=%s failed=%s",
                len(result.created),
                len(result.deleted),
                len(result.failed),
            )
        return result

    async def resync(self) -> ReconcileResult:
        guild = await self.fetch_guild()
        category = await self.ensure_category(guild)
        return await self.sync_planning(guild, category)

    async def initialize(self) -> ReconcileResult:
        # Scheduled before the first pass so a failing first pass still gets retried by the timer.
        if self.scheduler is not None:
            self.scheduler.schedule_planning_maintenance(self.resync, self.maintenance_cron)
        return await self.resync()

    async def sync_planning_command(self) -> ReconcileResult:
        return await self.initialize()

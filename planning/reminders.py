from __future__ import annotations

import logging
from typing import Any
from typing import Callable
from typing import Iterable

import discord

from config.defaults import AFFIRMATIVE_EMOJI
from config.defaults import DEFAULT_REMINDER_HISTORY_LIMIT
from misc.local_time import local_today
from planning.models import ReminderRule
from planning.reconciler import find_text_channel
from planning.reconciler import is_category
from planning.window import day_slug

log = logging.getLogger(__name__)


TRASH_LABELS = {
    "noir": ("🗑️", "noire"),
    "jaune": ("🟡", "jaune"),
}


def _find_slot_messages(messages: Iterable[Any], slots: Iterable[str]) -> dict[str, Any]:
    wanted = set(slots)
    found: dict[str, Any] = {}
    for message in messages:
        content = getattr(message, "content", None)
        if content in wanted and content not in found:
            found[content] = message
    return found


def _affirmative_reaction(message: Any, emoji: str):
    for reaction in getattr(message, "reactions", None) or []:
        if str(reaction.emoji) == emoji:
            return reaction
    return None


async def collect_recipients(
    guild,
    rule: ReminderRule,
    today_slug: str,
    *,
    category_name: str,
    history_limit: int = DEFAULT_REMINDER_HISTORY_LIMIT,
    emoji: str = AFFIRMATIVE_EMOJI,
) -> set[int]:
    """
    Return the ids of the members who signed up on any of rule's slots today.

    Read-only: this looks up today's planning channel under category_name, scans
    a bounded slice of its history for the slot placeholders, and unions the
    non-bot users behind each placeholder's affirmative reaction. Missing
    category, channel, placeholder or reaction shrink the result, they never raise.
    """
    channels = await guild.fetch_channels()
    category = next((c for c in channels if is_category(c) and c.name == category_name), None)
    if category is None:
        log.warning("[Reminders] planning category not found: %s", category_name)
        return set()

    channel = find_text_channel(channels, today_slug, category.id)
    if channel is None:
        log.warning("[Reminders] planning channel not found: %s", today_slug)
        return set()

    recent = [m async for m in channel.history(limit=history_limit)]
    slot_messages = _find_slot_messages(recent, rule.relevant_slots)
    missing = [s for s in rule.relevant_slots if s not in slot_messages]
    if missing:
        # Placeholders are the first messages of a planning channel; later traffic can push them out of the recent slice.
        oldest = [m async for m in channel.history(limit=history_limit, oldest_first=True)]
        slot_messages.update(_find_slot_messages(oldest, missing))
    log.info("[Reminders] scanned channel %s (%s recent messages)", channel.name, len(recent))

    user_ids: set[int] = set()
    for slot in rule.relevant_slots:
        message = slot_messages.get(slot)
        if message is None:
            log.warning("[Reminders] placeholder for slot %s not found", slot)
            continue
        reaction = _affirmative_reaction(message, emoji)
        if reaction is None:
            log.warning("[Reminders] no %s reaction on slot %s", emoji, slot)
            continue
        async for user in reaction.users():
            if getattr(user, "bot", False):
                continue
            user_ids.add(int(user.id))

    log.info("[Reminders] %s unique members signed up for %s", len(user_ids), rule.trash_type)
    return user_ids


def format_reminder_message(rule: ReminderRule, user_ids: Iterable[int]) -> str:
    emoji, name = TRASH_LABELS.get(rule.trash_type, ("🗑️", rule.trash_type))
    text = (
        f"{emoji} **Rappel: Poubelle {name}**\n\n"
        f"N'oubliez pas de sortir la poubelle {name} ce soir à {rule.hour}h !"
    )
    mentions = " ".join(f"<@{uid}>" for uid in sorted(set(user_ids)))
    if mentions:
        text += f"\n\n{mentions}"
    return text


class ReminderService:
    def __init__(
        self,
        bot,
        *,
        guild_id: int,
        planning_category: str,
        channel_name: str,
        parent_category_name: str,
        timezone_name: str,
        history_limit: int = DEFAULT_REMINDER_HISTORY_LIMIT,
        today_func: Callable[[], Any] | None = None,
    ) -> None:
        self.bot = bot
        self.guild_id = int(guild_id)
        self.planning_category = planning_category
        self.channel_name = channel_name
        self.parent_category_name = parent_category_name
        self.timezone_name = timezone_name
        self.history_limit = int(history_limit)
        self.today_func = today_func or (lambda: local_today(self.timezone_name))

    async def fetch_guild(self):
        guild = self.bot.get_guild(self.guild_id)
        if guild is None:
            guild = await self.bot.fetch_guild(self.guild_id)
        return guild

    async def ensure_reminder_channel(self, guild):
        channels = await guild.fetch_channels()
        existing = next(
            (c for c in channels if getattr(c, "type", None) == discord.ChannelType.text and c.name == self.channel_name),
            None,
        )
        if existing is not None:
            return existing

        parent = next((c for c in channels if is_category(c) and c.name == self.parent_category_name), None)
        created = await guild.create_text_channel(self.channel_name, category=parent, reason="Rappels de poubelles")
        where = f"in category {parent.name!r}" if parent is not None else "without category"
        log.info("[Reminders] channel %r created %s", self.channel_name, where)
        return created

    async def send_reminder(self, rule: ReminderRule) -> str:
        guild = await self.fetch_guild()
        channel = await self.ensure_reminder_channel(guild)
        slug = day_slug(self.today_func())
        user_ids = await collect_recipients(
            guild,
            rule,
            slug,
            category_name=self.planning_category,
            history_limit=self.history_limit,
        )
        text = format_reminder_message(rule, user_ids)
        await channel.send(text, allowed_mentions=discord.AllowedMentions(users=True, roles=False, everyone=False))
        log.info("[Reminders] %s reminder sent (%s mentioned)", rule.trash_type, len(user_ids))
        return text

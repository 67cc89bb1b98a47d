from __future__ import annotations

import unittest
from datetime import date
from types import SimpleNamespace

try:
    import discord
except ModuleNotFoundError:
    discord = None

if discord is not None:
    from planning.models import ReminderRule
    from planning.reminders import ReminderService
    from planning.reminders import collect_recipients
    from planning.reminders import format_reminder_message


EVENING = ("18:00 - 20:00", "20:00 - 22:00", "22:00 - 00:00")


class _FakeReaction:
    def __init__(self, emoji, users):
        self.emoji = emoji
        self._users = list(users)

    async def users(self):
        for u in self._users:
            yield u


class _FakeMessage:
    def __init__(self, content, reactions=()):
        self.content = content
        self.reactions = list(reactions)


class _FakeTextChannel:
    def __init__(self, channel_id, name, category_id, messages=()):
        self.id = channel_id
        self.name = name
        self.category_id = category_id
        self.type = discord.ChannelType.text
        # Oldest first.
        self.messages = list(messages)
        self.history_calls: list[dict] = []
        self.sent: list[tuple[str, object]] = []

    async def history(self, *, limit=100, oldest_first=False):
        self.history_calls.append({"limit": limit, "oldest_first": oldest_first})
        ordered = list(self.messages) if oldest_first else list(reversed(self.messages))
        for m in ordered[:limit]:
            yield m

    async def send(self, text, *, allowed_mentions=None):
        self.sent.append((text, allowed_mentions))


class _FakeCategory:
    def __init__(self, channel_id, name):
        self.id = channel_id
        self.name = name
        self.type = discord.ChannelType.category


class _FakeGuild:
    def __init__(self, channels=()):
        self.id = 42
        self.channels = list(channels)
        self.created: list[tuple[str, object]] = []

    async def fetch_channels(self):
        return list(self.channels)

    async def create_text_channel(self, name, *, category=None, reason=None):
        ch = _FakeTextChannel(900 + len(self.created), name, category.id if category is not None else None)
        self.created.append((name, category))
        self.channels.append(ch)
        return ch


class _FakeBot:
    def __init__(self, guild):
        self.guild = guild

    def get_guild(self, guild_id):
        return self.guild

    async def fetch_guild(self, guild_id):
        return self.guild


def _user(uid, bot=False):
    return SimpleNamespace(id=uid, bot=bot)


def _planning_channel(messages, name="mercredi-21-octobre"):
    category = _FakeCategory(1, "Planning")
    channel = _FakeTextChannel(2, name, category.id, messages)
    return category, channel


def _rule(slots=EVENING):
    return ReminderRule(trash_type="noir", weekday="wednesday", hour=20, relevant_slots=tuple(slots))


@unittest.skipIf(discord is None, "discord.py not installed")
class CollectRecipientsTests(unittest.IsolatedAsyncioTestCase):
    async def test_union_of_evening_slots_without_bots(self):
        bot_user = _user(999, bot=True)
        messages = [
            _FakeMessage(None),
            _FakeMessage("08:00 - 10:00", [_FakeReaction("✅", [bot_user, _user(50)])]),
            _FakeMessage("18:00 - 20:00", [_FakeReaction("✅", [bot_user, _user(1), _user(2)])]),
            _FakeMessage("20:00 - 22:00", [_FakeReaction("✅", [bot_user, _user(2), _user(3)])]),
            _FakeMessage("22:00 - 00:00", [_FakeReaction("✅", [bot_user])]),
        ]
        category, channel = _planning_channel(messages)
        guild = _FakeGuild([category, channel])

        users = await collect_recipients(guild, _rule(), "mercredi-21-octobre", category_name="Planning")

        self.assertEqual(users, {1, 2, 3})

    async def test_other_emoji_is_ignored(self):
        messages = [
            _FakeMessage("18:00 - 20:00", [_FakeReaction("❌", [_user(7)]), _FakeReaction("✅", [_user(8)])]),
        ]
        category, channel = _planning_channel(messages)
        guild = _FakeGuild([category, channel])

        users = await collect_recipients(guild, _rule(), "mercredi-21-octobre", category_name="Planning")

        self.assertEqual(users, {8})

    async def test_missing_category_returns_empty(self):
        guild = _FakeGuild([])

        with self.assertLogs("planning.reminders", level="WARNING"):
            users = await collect_recipients(guild, _rule(), "mercredi-21-octobre", category_name="Planning")

        self.assertEqual(users, set())

    async def test_missing_channel_returns_empty(self):
        category, channel = _planning_channel([], name="mardi-20-octobre")
        guild = _FakeGuild([category, channel])

        with self.assertLogs("planning.reminders", level="WARNING"):
            users = await collect_recipients(guild, _rule(), "mercredi-21-octobre", category_name="Planning")

        self.assertEqual(users, set())

    async def test_channel_with_same_name_outside_category_is_ignored(self):
        category = _FakeCategory(1, "Planning")
        stray = _FakeTextChannel(3, "mercredi-21-octobre", None, [
            _FakeMessage("18:00 - 20:00", [_FakeReaction("✅", [_user(1)])]),
        ])
        guild = _FakeGuild([category, stray])

        with self.assertLogs("planning.reminders", level="WARNING"):
            users = await collect_recipients(guild, _rule(), "mercredi-21-octobre", category_name="Planning")

        self.assertEqual(users, set())

    async def test_missing_slot_contributes_nothing(self):
        messages = [
            _FakeMessage("18:00 - 20:00", [_FakeReaction("✅", [_user(1)])]),
        ]
        category, channel = _planning_channel(messages)
        guild = _FakeGuild([category, channel])

        with self.assertLogs("planning.reminders", level="WARNING"):
            users = await collect_recipients(guild, _rule(), "mercredi-21-octobre", category_name="Planning")

        self.assertEqual(users, {1})

    async def test_placeholders_pushed_out_of_recent_slice_are_found(self):
        placeholders = [
            _FakeMessage("18:00 - 20:00", [_FakeReaction("✅", [_user(1)])]),
            _FakeMessage("20:00 - 22:00", [_FakeReaction("✅", [_user(2)])]),
            _FakeMessage("22:00 - 00:00", [_FakeReaction("✅", [_user(3)])]),
        ]
        chatter = [_FakeMessage(f"msg {i}") for i in range(10)]
        category, channel = _planning_channel(placeholders + chatter)
        guild = _FakeGuild([category, channel])

        users = await collect_recipients(
            guild, _rule(), "mercredi-21-octobre", category_name="Planning", history_limit=5
        )

        self.assertEqual(users, {1, 2, 3})
        self.assertEqual(
            channel.history_calls,
            [{"limit": 5, "oldest_first": False}, {"limit": 5, "oldest_first": True}],
        )

    async def test_single_history_read_when_all_slots_recent(self):
        messages = [_FakeMessage(slot, [_FakeReaction("✅", [])]) for slot in EVENING]
        category, channel = _planning_channel(messages)
        guild = _FakeGuild([category, channel])

        await collect_recipients(guild, _rule(), "mercredi-21-octobre", category_name="Planning")

        self.assertEqual(len(channel.history_calls), 1)


@unittest.skipIf(discord is None, "discord.py not installed")
class ReminderMessageTests(unittest.TestCase):
    def test_message_mentions_each_user_once(self):
        text = format_reminder_message(_rule(), [3, 1, 2, 1])
        self.assertIn("Poubelle noire", text)
        self.assertIn("ce soir à 20h", text)
        self.assertTrue(text.endswith("<@1> <@2> <@3>"))
        self.assertEqual(text.count("<@1>"), 1)

    def test_message_without_recipients_has_no_mentions(self):
        rule = ReminderRule(trash_type="jaune", weekday="thursday", hour=20, relevant_slots=EVENING)
        text = format_reminder_message(rule, [])
        self.assertIn("Poubelle jaune", text)
        self.assertNotIn("<@", text)

    def test_unknown_trash_type_uses_its_name(self):
        rule = ReminderRule(trash_type="verre", weekday="friday", hour=19, relevant_slots=())
        self.assertIn("Poubelle verre", format_reminder_message(rule, []))


@unittest.skipIf(discord is None, "discord.py not installed")
class ReminderServiceTests(unittest.IsolatedAsyncioTestCase):
    def _service(self, guild):
        return ReminderService(
            _FakeBot(guild),
            guild_id=guild.id,
            planning_category="Planning",
            channel_name="rappels-poubelles",
            parent_category_name="Fonctionnement asso",
            timezone_name="Europe/Paris",
            today_func=lambda: date(2026, 10, 21),
        )

    async def test_wednesday_reminder_mentions_evening_signups(self):
        messages = [
            _FakeMessage("18:00 - 20:00", [_FakeReaction("✅", [_user(1), _user(2)])]),
            _FakeMessage("20:00 - 22:00", [_FakeReaction("✅", [_user(2), _user(3)])]),
            _FakeMessage("22:00 - 00:00", [_FakeReaction("✅", [])]),
        ]
        category, planning = _planning_channel(messages)
        target = _FakeTextChannel(10, "rappels-poubelles", None)
        guild = _FakeGuild([category, planning, target])

        text = await self._service(guild).send_reminder(_rule())

        self.assertEqual(len(target.sent), 1)
        sent, allowed = target.sent[0]
        self.assertEqual(sent, text)
        for uid in (1, 2, 3):
            self.assertEqual(sent.count(f"<@{uid}>"), 1)
        self.assertFalse(allowed.everyone)
        self.assertFalse(allowed.roles)
        self.assertEqual(planning.sent, [])

    async def test_reminder_channel_created_under_parent_category(self):
        parent = _FakeCategory(5, "Fonctionnement asso")
        guild = _FakeGuild([parent])

        with self.assertLogs("planning.reminders", level="WARNING"):
            await self._service(guild).send_reminder(_rule())

        self.assertEqual(guild.created, [("rappels-poubelles", parent)])
        created = guild.channels[-1]
        self.assertEqual(len(created.sent), 1)
        self.assertNotIn("<@", created.sent[0][0])

    async def test_reminder_channel_created_without_parent(self):
        guild = _FakeGuild([])

        with self.assertLogs("planning.reminders", level="WARNING"):
            await self._service(guild).send_reminder(_rule())

        self.assertEqual(guild.created, [("rappels-poubelles", None)])


if __name__ == "__main__":
    unittest.main()

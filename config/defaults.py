from __future__ import annotations

# Planning
DEFAULT_PLANNING_CATEGORY = "Planning"
DEFAULT_PLANNING_DAYS_AHEAD = 7
DEFAULT_PLANNING_CRON = "*/1 11-20 * * *"
DEFAULT_TIMEZONE = "Europe/Paris"
AFFIRMATIVE_EMOJI = "✅"
PLANNING_HEADER_COLOUR = 0xD80C44

# Slot strings are matched byte-for-byte against posted messages.
# Append new slots; never rename an existing one.
DEFAULT_TIME_SLOTS = (
    "08:00 - 10:00",
    "10:00 - 12:00",
    "12:00 - 14:00",
    "14:00 - 16:00",
    "16:00 - 18:00",
    "18:00 - 20:00",
    "20:00 - 22:00",
    "22:00 - 00:00",
)

# Reminders
DEFAULT_TRASH_CHANNEL_NAME = "rappels-poubelles"
DEFAULT_TRASH_PARENT_CATEGORY = "Fonctionnement asso"
DEFAULT_REMINDER_HISTORY_LIMIT = 100
EVENING_SLOTS = ("18:00 - 20:00", "20:00 - 22:00", "22:00 - 00:00")
DEFAULT_REMINDER_RULES = (
    {"trash_type": "noir", "weekday": "wednesday", "hour": 20, "slots": EVENING_SLOTS},
    {"trash_type": "jaune", "weekday": "thursday", "hour": 20, "slots": EVENING_SLOTS},
)

# Status
DEFAULT_STATUS_OPEN_IMAGE = (
    "https://cdn.discordapp.com/attachments/1254003995454996522/1278085289893695559/open.png"
)
DEFAULT_STATUS_CLOSED_IMAGE = (
    "https://cdn.discordapp.com/attachments/1254003995454996522/1278085289054572575/close.png"
)

# Rules / gate
DEFAULT_MEMBER_ROLE_NAME = "Membre"
DEFAULT_RULES_LOG_FILE = "signatures_log.txt"
DEFAULT_GATE_LOG_FILE = "portal_logs.txt"
DEFAULT_TWILIO_REGION = "ie1"
GATE_NUMBER_ENV_KEYS = ("GATE_PHONE_NUMBER", "GATE_PHONE_NUMBER_1", "GATE_PHONE_NUMBER_2")

DEFAULT_LOG_LEVEL = "INFO"

from __future__ import annotations

import discord


def in_standard_text_channel(interaction: discord.Interaction) -> bool:
    # Threads, voice chats, forums and DMs are refused.
    channel = getattr(interaction, "channel", None)
    if channel is None or getattr(interaction, "guild", None) is None:
        return False
    return getattr(channel, "type", None) == discord.ChannelType.text


def member_display_name(interaction: discord.Interaction) -> str:
    user = interaction.user
    # interaction.user is a Member inside a guild; nick only exists there.
    nick = getattr(user, "nick", None)
    if nick:
        return str(nick)
    return str(getattr(user, "global_name", None) or user.name)


async def send_ephemeral(interaction: discord.Interaction, text: str) -> None:
    if interaction.response.is_done():
        await interaction.followup.send(text, ephemeral=True)
    else:
        await interaction.response.send_message(text, ephemeral=True)

from __future__ import annotations

import asyncio
import logging

import discord

from config.defaults import DEFAULT_MEMBER_ROLE_NAME
from config.defaults import DEFAULT_RULES_LOG_FILE
from misc.adhoc_modules.gate_service import append_log_line
from misc.local_time import format_log_timestamp
from misc.local_time import utc_now

log = logging.getLogger(__name__)

ACCEPT_RULES_ID = "acceptRules"
GENERIC_ERROR_MESSAGE = "Une erreur est survenue lors de l'ajout du rôle. Contactez un administrateur."


def find_role_by_name(guild: discord.Guild, name: str) -> discord.Role | None:
    for role in guild.roles:
        if role.name == name:
            return role
    return None


def build_rules_panel() -> tuple[discord.Embed, discord.ui.View]:
    embed = discord.Embed(
        title="Règlement de la salle",
        description=(
            "Merci de lire le règlement épinglé dans ce salon.\n\n"
            "En cliquant sur **J'accepte le règlement**, vous confirmez l'avoir lu "
            "et vous obtenez l'accès aux salons des membres."
        ),
        colour=discord.Colour.orange(),
    )
    view = discord.ui.View(timeout=None)
    view.add_item(
        discord.ui.Button(
            label="J'accepte le règlement",
            style=discord.ButtonStyle.success,
            custom_id=ACCEPT_RULES_ID,
        )
    )
    return embed, view


class RulesService:
    def __init__(
        self,
        *,
        member_role_name: str = DEFAULT_MEMBER_ROLE_NAME,
        log_path: str = DEFAULT_RULES_LOG_FILE,
        timezone_name: str,
    ) -> None:
        self.member_role_name = member_role_name
        self.log_path = log_path
        self.timezone_name = timezone_name

    async def log_signature(self, user) -> None:
        stamp = format_log_timestamp(utc_now(), self.timezone_name)
        line = f"[{stamp}] Utilisateur : {user} (ID : {user.id}) a accepté le règlement.\n"
        try:
            await asyncio.to_thread(append_log_line, self.log_path, line)
        except OSError:
            log.exception("[Rules] could not write to %s", self.log_path)

    async def handle_accept_rules(self, interaction: discord.Interaction) -> None:
        guild = interaction.guild
        if guild is None:
            await interaction.response.send_message(
                "Impossible de déterminer la guilde pour appliquer le rôle.",
                ephemeral=True,
            )
            return

        role = find_role_by_name(guild, self.member_role_name)
        if role is None:
            log.error("[Rules] role %r not found", self.member_role_name)
            await interaction.response.send_message(
                f'Le rôle "{self.member_role_name}" est introuvable. Contactez un administrateur.',
                ephemeral=True,
            )
            return

        await interaction.response.defer(ephemeral=True, thinking=True)

        user = interaction.user
        try:
            member = user if isinstance(user, discord.Member) else await guild.fetch_member(user.id)
            await member.add_roles(role, reason="Règlement accepté")
        except discord.HTTPException:
            log.exception("[Rules] could not grant role %s to %s", role.name, user)
            await interaction.edit_original_response(content=GENERIC_ERROR_MESSAGE)
            return

        await self.log_signature(user)
        await interaction.edit_original_response(
            content=f"Merci, {user.name}, vous avez accepté le règlement et obtenu le rôle **{role.name}**."
        )
        log.info("[Rules] %s accepted the rules", user)

from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates


async def handle_status_command(interaction: discord.Interaction, *, deps: CommandDeps, gates: CommandGates) -> None:
    if not gates.in_text_channel(interaction):
        await interaction.response.send_message("Commande indisponible dans ce salon.", ephemeral=True)
        return

    await interaction.response.defer(ephemeral=True, thinking=True)
    await deps.status_manager.publish_status(interaction.channel)
    await interaction.edit_original_response(content="Statut de la salle publié.")


async def handle_setup_command(interaction: discord.Interaction, *, deps: CommandDeps) -> None:
    await interaction.response.defer(ephemeral=True, thinking=True)
    result = await deps.planning_service.sync_planning_command()
    text = "Synchronisation du planning terminée."
    if result.failed:
        text += f" {len(result.failed)} salon(s) en erreur, voir les logs."
    await interaction.edit_original_response(content=text)


async def handle_rules_command(interaction: discord.Interaction, *, deps: CommandDeps, gates: CommandGates) -> None:
    if not gates.user_is_admin(interaction.user):
        await interaction.response.send_message("Commande réservée aux administrateurs.", ephemeral=True)
        return
    if not gates.in_text_channel(interaction):
        await interaction.response.send_message("Commande indisponible dans ce salon.", ephemeral=True)
        return

    embed, view = deps.rules_panel_factory()
    await interaction.channel.send(embed=embed, view=view)
    await interaction.response.send_message("Panneau du règlement publié.", ephemeral=True)


def build_gym_group(*, deps: CommandDeps, gates: CommandGates) -> app_commands.Group:
    group = app_commands.Group(name="gym", description="Gestion du statut de la salle et du planning")

    @group.command(name="status", description="Publier ou rafraîchir le statut de la salle dans ce salon")
    async def gym_status(interaction: discord.Interaction):
        await handle_status_command(interaction, deps=deps, gates=gates)

    @group.command(name="setup", description="Synchroniser les salons de planning manuellement")
    async def gym_setup(interaction: discord.Interaction):
        await handle_setup_command(interaction, deps=deps)

    @group.command(name="rules", description="Publier le panneau d'acceptation du règlement dans ce salon")
    async def gym_rules(interaction: discord.Interaction):
        await handle_rules_command(interaction, deps=deps, gates=gates)

    return group


def register(
    bot: commands.Bot,
    *,
    deps: CommandDeps,
    gates: CommandGates,
) -> app_commands.Group:
    group = build_gym_group(deps=deps, gates=gates)
    bot.tree.add_command(group, guild=discord.Object(id=deps.guild_id))
    return group

from __future__ import annotations

import enum
import logging
from typing import Mapping

import discord

from config.defaults import DEFAULT_STATUS_CLOSED_IMAGE
from config.defaults import DEFAULT_STATUS_OPEN_IMAGE

log = logging.getLogger(__name__)


class GymStatus(str, enum.Enum):
    OPEN = "Ouverte"
    CLOSED = "Fermée"


class StatusButton:
    OPEN = "openGym"
    CLOSE = "closeGym"
    GATE = "openGate"


OPEN_COLOUR = 0x00FF00
CLOSED_COLOUR = 0xFF0000


class GymStatusManager:
    """
    In-memory open/closed state and the one status message that shows it.

    The state lives only in this instance; a restart goes back to the default
    status and forgets the published message.
    """

    def __init__(self, images: Mapping[str, str] | None = None, default_status: GymStatus = GymStatus.CLOSED) -> None:
        images = images or {}
        self.images = {
            GymStatus.OPEN: images.get(GymStatus.OPEN.value) or DEFAULT_STATUS_OPEN_IMAGE,
            GymStatus.CLOSED: images.get(GymStatus.CLOSED.value) or DEFAULT_STATUS_CLOSED_IMAGE,
        }
        self.status = GymStatus(default_status)
        self.last_action_by: str | None = None
        self.status_message = None

    @property
    def current_status(self) -> GymStatus:
        return self.status

    @property
    def last_actor(self) -> str | None:
        return self.last_action_by

    @property
    def has_status_message(self) -> bool:
        return self.status_message is not None

    def build_embed(self) -> discord.Embed:
        last_action = self.last_action_by or "N/A"
        embed = discord.Embed(
            title="Statut de la salle de sport",
            description=(
                f"La salle de sport est actuellement **{self.status.value}**.\n\n"
                f"Dernière action par : **{last_action}**"
            ),
            colour=discord.Colour(OPEN_COLOUR if self.status is GymStatus.OPEN else CLOSED_COLOUR),
        )
        embed.set_image(url=self.images[self.status])
        return embed

    def build_view(self) -> discord.ui.View:
        view = discord.ui.View(timeout=None)
        view.add_item(
            discord.ui.Button(
                label="Ouvrir la salle",
                style=discord.ButtonStyle.success,
                custom_id=StatusButton.OPEN,
                disabled=self.status is GymStatus.OPEN,
            )
        )
        view.add_item(
            discord.ui.Button(
                label="Fermer la salle",
                style=discord.ButtonStyle.danger,
                custom_id=StatusButton.CLOSE,
                disabled=self.status is GymStatus.CLOSED,
            )
        )
        view.add_item(
            discord.ui.Button(
                label="Demander ouverture du portail",
                style=discord.ButtonStyle.primary,
                custom_id=StatusButton.GATE,
            )
        )
        return view

    async def publish_status(self, channel):
        if self.status_message is not None:
            try:
                await self.status_message.delete()
            except discord.HTTPException:
                log.warning("[Status] could not delete the previous status message", exc_info=True)

        message = await channel.send(embed=self.build_embed(), view=self.build_view())
        self.status_message = message
        return message

    async def refresh_status_message(self) -> None:
        if self.status_message is None:
            return
        try:
            await self.status_message.edit(embed=self.build_embed(), view=self.build_view())
        except discord.HTTPException:
            log.exception("[Status] could not refresh the status message")

    def update_status(self, new_status: GymStatus, actor: str) -> None:
        self.status = GymStatus(new_status)
        self.last_action_by = actor
        log.info("[Status] gym is now %s (by %s)", self.status.value, actor)

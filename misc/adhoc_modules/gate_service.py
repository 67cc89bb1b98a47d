from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path

from twilio.rest import Client as TwilioClient

from config.defaults import DEFAULT_GATE_LOG_FILE
from config.settings import TwilioSettings
from misc.discord_gates import member_display_name
from misc.local_time import format_clock
from misc.local_time import format_log_timestamp
from misc.local_time import utc_now

log = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "La fonctionnalité d'ouverture du portail est indisponible. Contactez un administrateur."
NO_NUMBERS_MESSAGE = "Aucun numéro de notification portail n'est configuré."


def append_log_line(path: str | Path, line: str) -> None:
    with Path(path).open("a", encoding="utf-8") as fh:
        fh.write(line)


class GateService:
    def __init__(
        self,
        twilio_settings: TwilioSettings | None,
        *,
        timezone_name: str,
        log_path: str = DEFAULT_GATE_LOG_FILE,
        client=None,
    ) -> None:
        self.settings = twilio_settings
        self.timezone_name = timezone_name
        self.log_path = log_path
        if client is None and twilio_settings is not None:
            client = TwilioClient(
                twilio_settings.account_sid,
                twilio_settings.auth_token,
                region=twilio_settings.region,
            )
        self.client = client
        if self.client is None:
            log.warning("[Gate] Twilio is not configured; gate requests are disabled")

    def is_enabled(self) -> bool:
        return self.client is not None and self.settings is not None

    @staticmethod
    def build_sms_body(user_name: str, clock: str) -> str:
        return (
            f"⚠️ Portail : Une demande d'ouverture a été déclenchée par {user_name} à {clock}. "
            "Veuillez vérifier et agir en conséquence."
        )

    def _send_sms_sync(self, number: str, body: str) -> str:
        message = self.client.messages.create(to=number, from_=self.settings.from_number, body=body)
        return str(message.sid)

    async def send_notifications(self, body: str) -> list[str]:
        results: list[str] = []
        for number in self.settings.gate_numbers:
            try:
                sid = await asyncio.to_thread(self._send_sms_sync, number, body)
            except Exception:
                log.exception("[Gate] SMS to %s failed", number)
                results.append(f"Échec de l'envoi vers {number}")
                continue
            results.append(f"Message envoyé à {number} (SID: {sid})")
        return results

    async def log_gate_opening(self, user_name: str, when: datetime) -> None:
        line = f"[{format_log_timestamp(when, self.timezone_name)}] {user_name} a demandé l'ouverture du portail.\n"
        try:
            await asyncio.to_thread(append_log_line, self.log_path, line)
        except OSError:
            log.exception("[Gate] could not write to %s", self.log_path)

    async def handle_open_gate(self, interaction) -> None:
        if not self.is_enabled():
            await interaction.response.send_message(UNAVAILABLE_MESSAGE, ephemeral=True)
            return
        if not self.settings.gate_numbers:
            await interaction.response.send_message(NO_NUMBERS_MESSAGE, ephemeral=True)
            return

        await interaction.response.defer(ephemeral=True, thinking=True)

        user_name = member_display_name(interaction)
        now = utc_now()
        body = self.build_sms_body(user_name, format_clock(now, self.timezone_name))
        results = await self.send_notifications(body)
        await self.log_gate_opening(user_name, now)
        await interaction.edit_original_response(content="\n".join(results))
        log.info("[Gate] request by %s relayed to %s number(s)", user_name, len(results))

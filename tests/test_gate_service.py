from __future__ import annotations

import tempfile
import unittest
from datetime import datetime
from datetime import timezone
from pathlib import Path
from types import SimpleNamespace

try:
    import discord
except ModuleNotFoundError:
    discord = None

if discord is not None:
    from config.settings import TwilioSettings
    from misc.adhoc_modules.gate_service import NO_NUMBERS_MESSAGE
    from misc.adhoc_modules.gate_service import UNAVAILABLE_MESSAGE
    from misc.adhoc_modules.gate_service import GateService


class _FakeMessages:
    def __init__(self, failing=()):
        self.calls: list[dict] = []
        self._failing = set(failing)

    def create(self, *, to, from_, body):
        self.calls.append({"to": to, "from_": from_, "body": body})
        if to in self._failing:
            raise RuntimeError("twilio rejected the number")
        return SimpleNamespace(sid=f"SM{len(self.calls)}")


class _FakeTwilio:
    def __init__(self, failing=()):
        self.messages = _FakeMessages(failing)


class _FakeInteractionResponse:
    def __init__(self):
        self.sent: list[tuple[str, bool]] = []
        self.deferred = False

    def is_done(self):
        return self.deferred or bool(self.sent)

    async def send_message(self, text, *, ephemeral=False):
        self.sent.append((text, ephemeral))

    async def defer(self, *, ephemeral=False, thinking=False):
        self.deferred = True


class _FakeInteraction:
    def __init__(self, nick="Alice"):
        self.user = SimpleNamespace(id=7, nick=nick, global_name=None, name="alice")
        self.response = _FakeInteractionResponse()
        self.edits: list[str] = []

    async def edit_original_response(self, *, content=None):
        self.edits.append(content)


def _settings(numbers=("+33611111111", "+33622222222")):
    return TwilioSettings(
        account_sid="AC1",
        auth_token="tok",
        from_number="+33100000000",
        gate_numbers=tuple(numbers),
    )


@unittest.skipIf(discord is None, "discord.py not installed")
class GateServiceTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.log_path = Path(self._tmp.name) / "portal_logs.txt"

    def tearDown(self):
        self._tmp.cleanup()

    def _service(self, settings, client):
        return GateService(settings, timezone_name="Europe/Paris", log_path=str(self.log_path), client=client)

    async def test_sms_sent_to_each_number_and_logged(self):
        client = _FakeTwilio()
        service = self._service(_settings(), client)
        interaction = _FakeInteraction()

        await service.handle_open_gate(interaction)

        self.assertTrue(interaction.response.deferred)
        self.assertEqual([c["to"] for c in client.messages.calls], ["+33611111111", "+33622222222"])
        for call in client.messages.calls:
            self.assertEqual(call["from_"], "+33100000000")
            self.assertIn("Alice", call["body"])
        (summary,) = interaction.edits
        self.assertEqual(
            summary.splitlines(),
            ["Message envoyé à +33611111111 (SID: SM1)", "Message envoyé à +33622222222 (SID: SM2)"],
        )
        lines = self.log_path.read_text(encoding="utf-8").splitlines()
        self.assertEqual(len(lines), 1)
        self.assertTrue(lines[0].endswith("Alice a demandé l'ouverture du portail."))

    async def test_partial_failure_reports_each_number(self):
        client = _FakeTwilio(failing={"+33611111111"})
        service = self._service(_settings(), client)
        interaction = _FakeInteraction()

        with self.assertLogs("misc.adhoc_modules.gate_service", level="ERROR"):
            await service.handle_open_gate(interaction)

        self.assertEqual(
            interaction.edits[0].splitlines(),
            ["Échec de l'envoi vers +33611111111", "Message envoyé à +33622222222 (SID: SM2)"],
        )
        self.assertTrue(self.log_path.exists())

    async def test_disabled_without_credentials(self):
        with self.assertLogs("misc.adhoc_modules.gate_service", level="WARNING"):
            service = self._service(None, None)
        interaction = _FakeInteraction()

        await service.handle_open_gate(interaction)

        self.assertFalse(service.is_enabled())
        self.assertEqual(interaction.response.sent, [(UNAVAILABLE_MESSAGE, True)])
        self.assertFalse(self.log_path.exists())

    async def test_no_numbers_configured(self):
        client = _FakeTwilio()
        service = self._service(_settings(numbers=()), client)
        interaction = _FakeInteraction()

        await service.handle_open_gate(interaction)

        self.assertEqual(interaction.response.sent, [(NO_NUMBERS_MESSAGE, True)])
        self.assertEqual(client.messages.calls, [])

    async def test_display_name_falls_back_to_username(self):
        client = _FakeTwilio()
        service = self._service(_settings(numbers=("+331",)), client)
        interaction = _FakeInteraction(nick=None)

        await service.handle_open_gate(interaction)

        self.assertIn("alice", client.messages.calls[0]["body"])

    async def test_log_line_uses_local_time(self):
        service = self._service(_settings(), _FakeTwilio())

        await service.log_gate_opening("Alice", datetime(2026, 10, 19, 12, 30, 5, tzinfo=timezone.utc))

        self.assertEqual(
            self.log_path.read_text(encoding="utf-8"),
            "[19 octobre 2026 à 14:30:05] Alice a demandé l'ouverture du portail.\n",
        )

    def test_sms_body(self):
        body = GateService.build_sms_body("Alice", "21:15")
        self.assertIn("Alice", body)
        self.assertIn("21:15", body)


if __name__ == "__main__":
    unittest.main()

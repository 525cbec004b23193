from __future__ import annotations

import json
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from birthdaybot.core.health_server import HealthCheckServer
from birthdaybot.database.birthday import BirthdayStorage
from birthdaybot.models.birthday import Birthday
from tests.fakes import FakeStorage


class FakeCheckTask:
    next_iteration = datetime(2026, 3, 16, tzinfo=timezone.utc)

    def is_running(self):
        return True


class FakeBirthdayCog:
    birthday_check_task = FakeCheckTask()


class FakeClientUser:
    id = 321


class FakeReadyBot:
    def __init__(self, ready: bool):
        self._ready = ready
        self.user = FakeClientUser()
        self.guilds = [object()]
        self.storage = FakeStorage([Birthday(1, "01-01"), Birthday(2, "02-02")])

    def is_ready(self):
        return self._ready

    def get_cog(self, name):
        return FakeBirthdayCog() if name == "BirthdayCog" else None


class HealthServerTests(unittest.IsolatedAsyncioTestCase):
    async def test_health_reports_starting_until_ready(self):
        server = HealthCheckServer(FakeReadyBot(ready=False))

        response = await server.handle_health(None)

        self.assertEqual(response.status, 200)
        self.assertEqual(json.loads(response.text), {"status": "starting", "ready": False})

    async def test_health_reports_healthy(self):
        server = HealthCheckServer(FakeReadyBot(ready=True))

        response = await server.handle_health(None)

        self.assertEqual(json.loads(response.text)["status"], "healthy")

    async def test_status_includes_birthday_state(self):
        server = HealthCheckServer(FakeReadyBot(ready=True))

        body = json.loads((await server.handle_status(None)).text)

        self.assertEqual(body["bot_id"], "321")
        self.assertEqual(body["guilds"], 1)
        self.assertEqual(body["birthdays"], 2)
        self.assertTrue(body["check_running"])
        self.assertEqual(body["next_check"], "2026-03-16T00:00:00+00:00")

    async def test_status_without_bot(self):
        server = HealthCheckServer(None)

        body = json.loads((await server.handle_status(None)).text)

        self.assertFalse(body["ready"])
        self.assertEqual(body["birthdays"], 0)
        self.assertFalse(body["check_running"])
        self.assertIsNone(body["next_check"])

    async def test_status_reports_last_known_count_without_touching_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "birthdays.json"
            bot = FakeReadyBot(ready=True)
            bot.storage = BirthdayStorage(path)
            bot.storage.save_birthday(1, "01-01")
            bot.storage.save_birthday(2, "02-02")
            path.unlink()

            body = json.loads((await HealthCheckServer(bot).handle_status(None)).text)

            self.assertEqual(body["birthdays"], 2)
            self.assertFalse(path.exists())

    async def test_ping(self):
        response = await HealthCheckServer(None).handle_ping(None)
        self.assertEqual(response.text, "pong")


if __name__ == "__main__":
    unittest.main()

from __future__ import annotations

import unittest
from datetime import date

import discord

from birthdaybot.models.birthday import Birthday
from birthdaybot.services.reconciler import BirthdayReconciler
from tests.fakes import FakeBot, FakeGuild, FakeMember, FakeRole, FakeStorage, forbidden

TODAY = date(2026, 3, 15)


def make_reconciler(guild: FakeGuild | None, records) -> BirthdayReconciler:
    return BirthdayReconciler(FakeBot(guild), FakeStorage(records), guild_id=100)


class ReconcilePassTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.role = FakeRole(1, "Birthday")

    async def test_grants_role_on_matching_day(self):
        member = FakeMember(7)
        guild = FakeGuild(members=[member], roles=[self.role])

        result = await make_reconciler(guild, [Birthday(7, "15-03")]).run_pass(TODAY)

        self.assertEqual(member.added, [self.role])
        self.assertEqual(member.removed, [])
        self.assertEqual(result.granted, [7])
        self.assertEqual(result.today, "15-03")

    async def test_revokes_role_on_other_day(self):
        member = FakeMember(7, roles=[self.role])
        guild = FakeGuild(members=[member], roles=[self.role])

        result = await make_reconciler(guild, [Birthday(7, "16-03")]).run_pass(TODAY)

        self.assertEqual(member.removed, [self.role])
        self.assertEqual(member.added, [])
        self.assertEqual(result.revoked, [7])

    async def test_no_calls_when_already_consistent(self):
        not_today = FakeMember(7)
        already_has = FakeMember(8, roles=[self.role])
        guild = FakeGuild(members=[not_today, already_has], roles=[self.role])

        result = await make_reconciler(
            guild, [Birthday(7, "16-03"), Birthday(8, "15-03")]
        ).run_pass(TODAY)

        for member in (not_today, already_has):
            self.assertEqual(member.added, [])
            self.assertEqual(member.removed, [])
        self.assertEqual(result.changed, 0)

    async def test_unresolvable_member_is_skipped(self):
        guild = FakeGuild(members=[], roles=[self.role])

        result = await make_reconciler(guild, [Birthday(7, "15-03")]).run_pass(TODAY)

        self.assertEqual(result.skipped, 1)
        self.assertEqual(result.changed, 0)
        self.assertEqual(result.failed, [])

    async def test_invalid_stored_date_never_matches(self):
        member = FakeMember(7, roles=[self.role])
        guild = FakeGuild(members=[member], roles=[self.role])

        await make_reconciler(guild, [Birthday(7, "garbage")]).run_pass(TODAY)

        self.assertEqual(member.removed, [self.role])

    async def test_leap_day_birthday_is_revoked_on_march_first_of_common_year(self):
        member = FakeMember(7, roles=[self.role])
        guild = FakeGuild(members=[member], roles=[self.role])

        result = await make_reconciler(guild, [Birthday(7, "29-02")]).run_pass(date(2026, 3, 1))

        self.assertEqual(member.removed, [self.role])
        self.assertEqual(member.added, [])
        self.assertEqual(result.revoked, [7])

    async def test_leap_day_birthday_is_granted_on_february_29th(self):
        member = FakeMember(7)
        guild = FakeGuild(members=[member], roles=[self.role])

        result = await make_reconciler(guild, [Birthday(7, "29-02")]).run_pass(date(2028, 2, 29))

        self.assertEqual(member.added, [self.role])
        self.assertEqual(result.granted, [7])

    async def test_failure_on_one_member_does_not_abort_pass(self):
        broken = FakeMember(7, fail_with=forbidden())
        healthy = FakeMember(8)
        guild = FakeGuild(members=[broken, healthy], roles=[self.role])

        result = await make_reconciler(
            guild, [Birthday(7, "15-03"), Birthday(8, "15-03")]
        ).run_pass(TODAY)

        self.assertEqual(result.failed, [7])
        self.assertEqual(result.granted, [8])
        self.assertEqual(healthy.added, [self.role])

    async def test_missing_guild_aborts(self):
        member = FakeMember(7)
        guild = FakeGuild(guild_id=555, members=[member], roles=[self.role])

        result = await make_reconciler(guild, [Birthday(7, "15-03")]).run_pass(TODAY)

        self.assertIsNone(result)
        self.assertEqual(member.added, [])

    async def test_defaults_to_current_date(self):
        guild = FakeGuild(members=[], roles=[self.role])
        reconciler = make_reconciler(guild, [])

        result = await reconciler.run_pass()

        self.assertEqual(result.today, reconciler.today().strftime("%d-%m"))


class EnsureRoleTests(unittest.IsolatedAsyncioTestCase):
    async def test_existing_role_is_found_by_exact_name(self):
        role = FakeRole(1, "Birthday")
        guild = FakeGuild(roles=[FakeRole(2, "birthday"), role])

        found = await make_reconciler(guild, []).ensure_role(guild)

        self.assertIs(found, role)
        self.assertEqual(guild.created, [])

    async def test_missing_role_is_created_with_defaults(self):
        member = FakeMember(7)
        guild = FakeGuild(members=[member], roles=[])

        result = await make_reconciler(guild, [Birthday(7, "15-03")]).run_pass(TODAY)

        self.assertEqual(len(guild.created), 1)
        created = guild.created[0]
        self.assertEqual(created["name"], "Birthday")
        self.assertEqual(created["permissions"], discord.Permissions.none())
        self.assertEqual(created["color"], discord.Color.gold())
        self.assertTrue(created["hoist"])
        self.assertTrue(created["mentionable"])
        self.assertEqual(result.granted, [7])

    async def test_role_creation_failure_aborts(self):
        member = FakeMember(7)
        guild = FakeGuild(members=[member], roles=[], create_error=forbidden())

        result = await make_reconciler(guild, [Birthday(7, "15-03")]).run_pass(TODAY)

        self.assertIsNone(result)
        self.assertEqual(member.added, [])

    async def test_custom_role_name(self):
        role = FakeRole(3, "今天我生日")
        guild = FakeGuild(roles=[role])
        reconciler = BirthdayReconciler(FakeBot(guild), FakeStorage(), guild_id=100, role_name="今天我生日")

        self.assertIs(await reconciler.ensure_role(guild), role)


if __name__ == "__main__":
    unittest.main()

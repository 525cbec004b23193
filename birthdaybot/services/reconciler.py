"""Daily birthday role reconciliation."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo

import discord
from discord.ext import commands

from birthdaybot.core.constants import BIRTHDAY_COLOR, DEFAULT_ROLE_NAME
from birthdaybot.database.birthday import BirthdayStorage
from birthdaybot.models.birthday import today_key

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation pass."""

    today: str
    granted: list[int] = field(default_factory=list)
    revoked: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)
    skipped: int = 0

    @property
    def changed(self) -> int:
        return len(self.granted) + len(self.revoked)


class BirthdayReconciler:
    """Grants the birthday role to today's birthdays and removes it from everyone else."""

    def __init__(
        self,
        bot: commands.Bot,
        storage: BirthdayStorage,
        guild_id: int,
        role_name: str = DEFAULT_ROLE_NAME,
        tz: tzinfo | None = None,
    ):
        self.bot = bot
        self.storage = storage
        self.guild_id = guild_id
        self.role_name = role_name
        self.tz = tz

    def today(self) -> date:
        return datetime.now(self.tz).date()

    async def ensure_role(self, guild: discord.Guild) -> discord.Role | None:
        """Find the birthday role by name, creating it if missing."""
        role = discord.utils.get(guild.roles, name=self.role_name)
        if role:
            return role

        logger.info(f"Role '{self.role_name}' not found in {guild.id}, creating it")
        try:
            role = await guild.create_role(
                name=self.role_name,
                permissions=discord.Permissions.none(),
                color=BIRTHDAY_COLOR,
                hoist=True,
                mentionable=True,
                reason="Birthday role",
            )
        except discord.HTTPException as e:
            logger.error(f"Failed to create birthday role: {e}")
            return None

        logger.info(f"Created birthday role {role.id}")
        return role

    async def run_pass(self, today: date | None = None) -> ReconcileResult | None:
        """Run one reconciliation pass.

        Returns None when the pass was aborted because the guild or role
        is unavailable.
        """
        today = today or self.today()
        key = today_key(today)

        guild = self.bot.get_guild(self.guild_id)
        if not guild:
            logger.error(f"Guild {self.guild_id} not found, skipping birthday check")
            return None

        role = await self.ensure_role(guild)
        if not role:
            return None

        result = ReconcileResult(today=key)
        for record in self.storage.load_birthdays():
            member = guild.get_member(record.user_id)
            if not member:
                result.skipped += 1
                continue

            has_role = role in member.roles
            is_birthday = record.birthday == key

            try:
                if is_birthday and not has_role:
                    await member.add_roles(role, reason="Birthday")
                    result.granted.append(member.id)
                    logger.info(f"Added birthday role to {member} ({member.id})")
                elif not is_birthday and has_role:
                    await member.remove_roles(role, reason="Birthday ended")
                    result.revoked.append(member.id)
                    logger.info(f"Removed birthday role from {member} ({member.id})")
            except discord.HTTPException as e:
                result.failed.append(member.id)
                logger.warning(f"Cannot update birthday role for {member.id}: {e}")

        logger.info(
            f"Birthday check {result.today}: granted={len(result.granted)} "
            f"revoked={len(result.revoked)} failed={len(result.failed)} skipped={result.skipped}"
        )
        return result

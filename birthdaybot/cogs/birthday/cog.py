"""Birthday feature cog."""

from __future__ import annotations

import logging
from datetime import time, tzinfo
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands, tasks

from birthdaybot.models.birthday import InvalidBirthdayError, parse_birthday

if TYPE_CHECKING:
    from birthdaybot.database.birthday import BirthdayStorage
    from birthdaybot.services.reconciler import BirthdayReconciler, ReconcileResult

logger = logging.getLogger(__name__)

MIDNIGHT = time(hour=0, minute=0)


def check_time(tz: tzinfo | None) -> time:
    """指定時區的午夜，未指定時區時 tasks 視為 UTC"""
    return MIDNIGHT.replace(tzinfo=tz)


async def is_bot_owner(interaction: discord.Interaction) -> bool:
    """僅允許 Bot 擁有者使用"""
    client = interaction.client
    if isinstance(client, commands.Bot):
        return await client.is_owner(interaction.user)
    return False


def format_result(result: ReconcileResult) -> str:
    """格式化檢查結果"""
    msg = f"生日檢查完成 ({result.today})：新增 {len(result.granted)} 人、移除 {len(result.revoked)} 人"
    if result.failed:
        msg += f"\n{len(result.failed)} 人更新失敗，請檢查 Bot 權限"
    return msg


class BirthdayCog(commands.Cog):
    """生日功能 Cog"""

    def __init__(
        self,
        bot: commands.Bot,
        storage: BirthdayStorage,
        reconciler: BirthdayReconciler,
        tz: tzinfo | None = None,
    ):
        self.bot = bot
        self.storage = storage
        self.reconciler = reconciler
        self.birthday_check_task.change_interval(time=check_time(tz))

    async def cog_load(self) -> None:
        self.birthday_check_task.start()
        logger.info("Birthday cog loaded")

    async def cog_unload(self) -> None:
        self.birthday_check_task.cancel()

    # ==================== Background Tasks ====================

    @tasks.loop(time=MIDNIGHT)
    async def birthday_check_task(self) -> None:
        try:
            await self.reconciler.run_pass()
        except Exception as e:
            logger.exception(f"Error in scheduled birthday check: {e}")

    @birthday_check_task.before_loop
    async def _wait_ready(self) -> None:
        await self.bot.wait_until_ready()

    # ==================== Helpers ====================

    async def _reply(self, interaction: discord.Interaction, content: str) -> None:
        """送出 defer 之後的回覆"""
        try:
            await interaction.followup.send(content, ephemeral=True)
        except discord.HTTPException as e:
            logger.error(f"Failed to send followup to {interaction.user.id}: {e}")

    # ==================== Commands ====================

    @app_commands.command(name="setbirthday", description="設定你的生日 (格式: DD-MM)")
    @app_commands.describe(date="生日日期，例如 15-03")
    async def set_birthday(self, interaction: discord.Interaction, date: str) -> None:
        user = interaction.user
        logger.info(f"{user} ({user.id}) set birthday to {date!r}")

        await interaction.response.defer(ephemeral=True)

        try:
            birthday = parse_birthday(date)
        except InvalidBirthdayError as e:
            await self._reply(interaction, str(e))
            return

        try:
            previous = self.storage.get_birthday(user.id)
            self.storage.save_birthday(user.id, birthday)
        except Exception as e:
            logger.exception(f"Error saving birthday for {user.id}: {e}")
            await self._reply(interaction, "儲存生日時發生錯誤")
            return

        if previous and previous.birthday != birthday:
            await self._reply(interaction, f"生日已從 {previous.birthday} 更新為 {birthday}")
        else:
            await self._reply(interaction, f"生日已設定為 {birthday}")

    @app_commands.command(name="checkbirthdays", description="手動執行生日檢查")
    @app_commands.default_permissions(manage_roles=True)
    @app_commands.check(is_bot_owner)
    async def check_birthdays(self, interaction: discord.Interaction) -> None:
        logger.info(f"{interaction.user} ({interaction.user.id}) triggered a manual birthday check")

        # 檢查可能超過 3 秒，先 defer
        await interaction.response.defer(ephemeral=True)

        try:
            result = await self.reconciler.run_pass()
        except Exception as e:
            logger.exception(f"Error during birthday check: {e}")
            await self._reply(interaction, "生日檢查時發生錯誤")
            return

        if result is None:
            await self._reply(interaction, "找不到伺服器或生日身分組，檢查已中止")
            return

        await self._reply(interaction, format_result(result))

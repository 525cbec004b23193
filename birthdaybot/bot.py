"""
Birthday Discord Bot
使用 discord.py 2.x 和 Slash Commands
"""

import asyncio
import logging
import sys

import discord
from discord import app_commands
from discord.ext import commands
from dotenv import load_dotenv
from pydantic import ValidationError

from birthdaybot.config import BotSettings, get_settings
from birthdaybot.core.health_server import HealthCheckServer
from birthdaybot.core.logging import setup_logging
from birthdaybot.database.birthday import BirthdayStorage
from birthdaybot.services.reconciler import BirthdayReconciler

logger = logging.getLogger(__name__)


class BirthdayBot(commands.Bot):
    """Birthday Bot 客戶端"""

    def __init__(self, settings: BotSettings):
        # 成員資訊用於解析生日名單
        intents = discord.Intents.default()
        intents.members = True

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None,
            owner_ids=set(settings.discord_owner_ids),
        )

        self.settings = settings
        self.guild_id = settings.discord_guild_id

        self.storage = BirthdayStorage(settings.birthdays_path)
        self.reconciler = BirthdayReconciler(
            self,
            self.storage,
            guild_id=settings.discord_guild_id,
            role_name=settings.birthday_role_name,
            tz=settings.tzinfo,
        )
        self.health_server: HealthCheckServer | None = None

        self.initial_extensions = [
            "birthdaybot.cogs.utility",
            "birthdaybot.cogs.birthday",
        ]

        self.tree.error(self.on_app_command_error)

    async def setup_hook(self) -> None:
        """Bot 啟動時的初始化設置"""
        loaded = []
        failed = []

        for extension in self.initial_extensions:
            try:
                await self.load_extension(extension)
                loaded.append(extension.split(".")[-1])
            except commands.ExtensionError as e:
                failed.append(f"{extension.split('.')[-1]} ({e})")

        if loaded:
            logger.info(f"[green]已載入 Cogs:[/green] {', '.join(loaded)}")
        if failed:
            logger.error(f"[red]載入失敗:[/red] {', '.join(failed)}")

        # 同步斜線指令到目標伺服器
        logger.info("[yellow]正在同步斜線指令...[/yellow]")
        guild = discord.Object(id=self.guild_id)
        self.tree.copy_global_to(guild=guild)
        synced = await self.tree.sync(guild=guild)
        logger.info(f"[magenta]已同步 {len(synced)} 個斜線指令到伺服器 {self.guild_id}[/magenta]")

        if self.settings.health_port:
            self.health_server = HealthCheckServer(self, port=self.settings.health_port)
            await self.health_server.start()

    async def on_ready(self) -> None:
        """Bot 連接成功並就緒時觸發"""
        guild = self.get_guild(self.guild_id)
        if guild:
            logger.info(f"[cyan]目標伺服器:[/cyan] {guild.name} (ID: {guild.id})")
        else:
            logger.warning(f"Bot is not a member of guild {self.guild_id}")

        await self.change_presence(
            status=self.settings.get_status(), activity=self.settings.get_activity()
        )

        logger.info(f"[bold green]Bot 已就緒:[/bold green] {self.user} [dim](ID: {self.user.id if self.user else '?'})[/dim]")
        logger.info(f"[cyan]連接資訊:[/cyan] {len(self.guilds)} 個伺服器 | discord.py {discord.__version__}")

    async def on_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        """處理斜線指令錯誤"""
        if isinstance(error, app_commands.CheckFailure):
            message = "你沒有權限使用這個指令"
        else:
            logger.error(f"指令錯誤: {error}", exc_info=error)
            message = "執行指令時發生錯誤"

        try:
            if interaction.response.is_done():
                await interaction.followup.send(message, ephemeral=True)
            else:
                await interaction.response.send_message(message, ephemeral=True)
        except discord.HTTPException as e:
            logger.error(f"Failed to report command error: {e}")

    async def close(self) -> None:
        if self.health_server:
            await self.health_server.stop()
        await super().close()


async def main() -> int:
    """Bot 啟動主函數"""
    load_dotenv(encoding="utf-8")

    try:
        settings = get_settings()
    except ValidationError as e:
        setup_logging()
        logger.error(f"[bold red]設定錯誤:[/bold red]\n{e}")
        logger.error("請在 .env 或 settings.json 中設定 DISCORD_TOKEN 與 DISCORD_GUILD_ID")
        return 1

    setup_logging(settings.log_level)
    logger.info(f"Token: {settings.masked_token} | Guild: {settings.discord_guild_id}")
    if settings.discord_owner_ids:
        logger.info(f"Owner IDs: {', '.join(map(str, settings.discord_owner_ids))}")

    async with BirthdayBot(settings) as bot:
        try:
            await bot.start(settings.discord_token.get_secret_value())
        except discord.LoginFailure as e:
            logger.error(f"[bold red]登入失敗:[/bold red] {e}")
            return 1
        except (KeyboardInterrupt, asyncio.CancelledError):
            if not bot.is_closed():
                await bot.close()
    return 0


def run() -> None:
    """Console script entry point"""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("[yellow]Bot 已手動停止[/yellow]")

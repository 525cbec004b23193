"""Birthday bot configuration using Pydantic Settings"""

import logging
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import discord
from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

logger = logging.getLogger(__name__)

# Keys accepted under the "Discord" section of settings.json
_DISCORD_SECTION_KEYS = {
    "Token": "discord_token",
    "GuildId": "discord_guild_id",
    "OwnerIds": "discord_owner_ids",
}


class BotSettings(BaseSettings):
    """Bot settings from environment, .env and settings.json"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        json_file="settings.json",
        json_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Discord
    discord_token: SecretStr = Field(..., description="Discord bot token")
    discord_guild_id: int = Field(..., description="Guild where the bot operates")
    discord_owner_ids: Annotated[list[int], NoDecode] = Field(
        default_factory=list, description="Users allowed to run owner commands"
    )

    # Birthdays
    birthdays_path: Path = Field(
        default=Path("data/birthdays.json"), description="Birthday JSON document"
    )
    birthday_role_name: str = Field(
        default="Birthday", min_length=1, description="Role given on a member's birthday"
    )
    birthday_timezone: str = Field(
        default="",
        description="IANA timezone for the daily check, empty for the system UTC offset",
    )

    # Presence
    discord_status: str = Field(default="")
    discord_activity_type: str = Field(default="")
    discord_activity_name: str = Field(default="")

    # Environment
    log_level: str = Field(default="INFO", description="Logging level")
    health_port: int = Field(default=0, ge=0, le=65535, description="Health server port, 0 disables it")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    @model_validator(mode="before")
    @classmethod
    def flatten_discord_section(cls, data: Any) -> Any:
        """Accept {"Discord": {"Token", "GuildId", "OwnerIds"}} from settings.json"""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        section = data.pop("Discord", None) or data.pop("discord", None)
        if isinstance(section, dict):
            for key, field_name in _DISCORD_SECTION_KEYS.items():
                if key in section:
                    data.setdefault(field_name, section[key])
        return data

    @field_validator("discord_token")
    @classmethod
    def validate_token(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("Discord token must not be empty")
        return v

    @field_validator("discord_owner_ids", mode="before")
    @classmethod
    def parse_owner_ids(cls, v: Any) -> Any:
        """Accept a list, a JSON list or comma separated ids"""
        if isinstance(v, int):
            return [v]
        if isinstance(v, str):
            v = v.strip().strip("[]")
            return [part.strip() for part in v.split(",") if part.strip()]
        return v

    @field_validator("birthday_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        v = v.strip()
        if v:
            try:
                ZoneInfo(v)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ValueError(f"Unknown timezone '{v}'") from e
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            logger.warning(f"Invalid log level '{v}', defaulting to INFO")
            return "INFO"
        return v_upper

    @property
    def tzinfo(self) -> ZoneInfo | timezone:
        """Timezone for the daily check, the system offset when unset"""
        if self.birthday_timezone:
            return ZoneInfo(self.birthday_timezone)
        return datetime.now().astimezone().tzinfo  # type: ignore[return-value]

    @property
    def masked_token(self) -> str:
        return f"{self.discord_token.get_secret_value()[:5]}..."

    def get_status(self) -> discord.Status:
        status_map = {
            "online": discord.Status.online,
            "idle": discord.Status.idle,
            "dnd": discord.Status.dnd,
            "invisible": discord.Status.invisible,
        }
        return status_map.get(self.discord_status.lower(), discord.Status.online)

    def get_activity(self) -> discord.Activity | None:
        """Supports: playing, listening, watching, competing"""
        if not self.discord_activity_name:
            return None

        activity_map = {
            "playing": discord.ActivityType.playing,
            "listening": discord.ActivityType.listening,
            "watching": discord.ActivityType.watching,
            "competing": discord.ActivityType.competing,
        }
        activity_type = activity_map.get(self.discord_activity_type.lower(), discord.ActivityType.playing)
        return discord.Activity(type=activity_type, name=self.discord_activity_name)


@lru_cache
def get_settings() -> BotSettings:
    """Get cached settings instance"""
    return BotSettings()  # type: ignore[call-arg]

"""Shared constants."""

import discord

BOT_NAME = "birthdaybot"
BOT_VERSION = "1.0.0"

# Birthday role
BIRTHDAY_COLOR = discord.Color.gold()
DEFAULT_ROLE_NAME = "Birthday"

"""Discord bot that gives members a role on their birthday."""

from birthdaybot.core.constants import BOT_VERSION

__version__ = BOT_VERSION

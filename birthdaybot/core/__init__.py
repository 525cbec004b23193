"""Core modules for the birthday bot."""

from .constants import BIRTHDAY_COLOR, BOT_NAME, BOT_VERSION, DEFAULT_ROLE_NAME
from .health_server import HealthCheckServer
from .logging import setup_logging

__all__ = [
    # Constants
    "BOT_NAME",
    "BOT_VERSION",
    "BIRTHDAY_COLOR",
    "DEFAULT_ROLE_NAME",
    # Services
    "HealthCheckServer",
    # Logging
    "setup_logging",
]

"""Storage module for the birthday bot."""

from .birthday import BirthdayStorage

__all__ = ["BirthdayStorage"]

"""Data models for the birthday bot."""

from .birthday import (
    Birthday,
    InvalidBirthdayError,
    parse_birthday,
    today_key,
)

__all__ = [
    "Birthday",
    "InvalidBirthdayError",
    "parse_birthday",
    "today_key",
]

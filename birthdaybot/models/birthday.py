"""Data model for stored birthdays."""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

_DATE_PATTERN = re.compile(r"^\s*(\d{1,2})\s*[-/]\s*(\d{1,2})\s*$")

# Day limits in a leap year, so 29-02 stays valid
_MAX_DAYS = {month: calendar.monthrange(2000, month)[1] for month in range(1, 13)}


class InvalidBirthdayError(ValueError):
    """Raised when a user supplied date is not a valid DD-MM birthday."""


@dataclass
class Birthday:
    """A user's birthday, keyed by user id."""

    user_id: int
    birthday: str = field(compare=False)

    def __hash__(self) -> int:
        return hash(self.user_id)

    def to_dict(self) -> dict[str, Any]:
        return {"UserId": self.user_id, "Birthday": self.birthday}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Birthday:
        user_id = data["UserId"]
        birthday = data["Birthday"]
        if isinstance(user_id, bool) or not isinstance(user_id, int):
            raise TypeError(f"UserId must be an integer, got {user_id!r}")
        if not isinstance(birthday, str):
            raise TypeError(f"Birthday must be a string, got {birthday!r}")
        return cls(user_id=user_id, birthday=birthday)


def parse_birthday(text: str) -> str:
    """Validate a DD-MM date and return it zero-padded.

    Accepts ``-`` or ``/`` as separator and one or two digits per part.
    """
    match = _DATE_PATTERN.match(text or "")
    if not match:
        raise InvalidBirthdayError("日期格式錯誤，請使用 DD-MM (例如: 15-03)")

    day, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise InvalidBirthdayError("月份需在 1-12 之間")
    max_day = _MAX_DAYS[month]
    if not 1 <= day <= max_day:
        raise InvalidBirthdayError(f"日期無效，{month} 月最多 {max_day} 天")

    return f"{day:02d}-{month:02d}"


def today_key(value: date | datetime) -> str:
    return value.strftime("%d-%m")

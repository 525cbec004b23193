"""Birthday storage backed by a single JSON document."""

import json
import logging
import os
from pathlib import Path

from birthdaybot.models.birthday import Birthday

logger = logging.getLogger(__name__)


class BirthdayStorage:
    """Loads and saves birthdays to a JSON file.

    The document is a JSON array of ``{"UserId": int, "Birthday": "DD-MM"}``
    objects. A freshly created file holds ``{}``, which loads as empty.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        # Size of the last loaded or saved set
        self.record_count = 0
        logger.info(f"Birthdays file: {self.path.resolve()}")

        if not self.path.exists():
            logger.warning("Birthdays file not found, creating a new one")
            self._write_text("{}")

    # ==================== Read ====================

    def load_birthdays(self) -> list[Birthday]:
        """Load all stored birthdays.

        Never raises: a missing, unreadable or corrupt file loads as empty.
        """
        records = self._read_birthdays()
        self.record_count = len(records)
        return records

    def _read_birthdays(self) -> list[Birthday]:
        if not self.path.exists():
            logger.warning("Birthdays file missing, recreating it")
            try:
                self._write_text("[]")
            except OSError as e:
                logger.error(f"Failed to recreate birthdays file: {e}")
            return []

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read birthdays file: {type(e).__name__}: {e}")
            return []

        if not isinstance(data, list):
            return []

        records: dict[int, Birthday] = {}
        try:
            for item in data:
                record = Birthday.from_dict(item)
                records[record.user_id] = record
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Malformed birthday entry: {type(e).__name__}: {e}")
            return []

        logger.debug(f"Loaded {len(records)} birthdays")
        return list(records.values())

    def get_birthday(self, user_id: int) -> Birthday | None:
        for record in self.load_birthdays():
            if record.user_id == user_id:
                return record
        return None

    # ==================== Write ====================

    def save_birthday(self, user_id: int, date: str) -> None:
        """Insert or update a user's birthday and rewrite the file.

        Write failures are logged, not raised.
        """
        records = self.load_birthdays()

        existing = next((r for r in records if r.user_id == user_id), None)
        if existing:
            logger.info(f"Updating birthday for {user_id}: {existing.birthday} -> {date}")
            existing.birthday = date
        else:
            logger.info(f"Adding birthday for {user_id}: {date}")
            records.append(Birthday(user_id=user_id, birthday=date))

        payload = json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False)
        try:
            self._write_text(payload)
        except OSError as e:
            logger.error(f"Failed to save birthdays file: {e}")
            return
        self.record_count = len(records)

    def _write_text(self, content: str) -> None:
        """Write through a temp file renamed into place."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(content, encoding="utf-8")
        os.replace(tmp, self.path)

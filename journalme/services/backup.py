"""
Backup Codec

Exports the whole local database as one JSON document and restores it.

DESIGN DECISION: Import is all-or-nothing. The document is fully
validated before anything is replaced; a bad file leaves the current
data untouched.
"""

import json
from datetime import date, datetime
from typing import Optional

from pydantic import ValidationError

from journalme.engine import has_day_changed
from journalme.models.backup import BackupSnapshot
from journalme.services.storage.interface import BackupFormatError
from journalme.services.storage.local import LocalDatabase


BACKUP_FILENAME_PREFIX = "JournalMe_AutoBackup_"


def backup_filename(day: date) -> str:
    """File name for a backup taken on ``day``."""
    return f"{BACKUP_FILENAME_PREFIX}{day.isoformat()}.json"


def needs_auto_backup(last_backup_day: Optional[date], today: date) -> bool:
    """One automatic backup per calendar day."""
    return has_day_changed(last_backup_day, today)


class BackupCodec:
    """Serialise and restore a LocalDatabase."""

    def __init__(self, db: LocalDatabase):
        self._db = db

    def export_json(self, now: datetime) -> str:
        """
        Dump every table.

        Args:
            now: Timestamp recorded as ``backup_date``
        """
        snapshot = self._db.snapshot()
        snapshot.backup_date = now
        return snapshot.model_dump_json(indent=2)

    @staticmethod
    def decode(text: str) -> BackupSnapshot:
        """
        Parse and validate a backup document.

        Raises:
            BackupFormatError: If the text is not JSON or doesn't match the schema
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise BackupFormatError(f"Backup is not valid JSON: {e}")

        if not isinstance(data, dict):
            raise BackupFormatError("Backup must be a JSON object")

        try:
            return BackupSnapshot.model_validate(data)
        except ValidationError as e:
            raise BackupFormatError(
                f"Backup has {e.error_count()} invalid field(s): {e.errors()[0]['loc']}"
            )

    async def import_json(self, text: str) -> BackupSnapshot:
        """
        Replace the whole database with the contents of a backup.

        Returns:
            The snapshot that was restored
        """
        snapshot = self.decode(text)
        await self._db.replace(snapshot)
        return snapshot

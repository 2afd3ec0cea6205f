"""
Backup manager — copy a user file aside before it is overwritten.

``protect(path)`` returns only once the copy is on disk, so the caller
may start writing immediately afterwards.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from termsetup.core.models.backup import BackupRecord

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


class BackupManager:
    """Creates ``<path>.<YYYYMMDD_HHMMSS>`` copies.

    Args:
        clock: Returns the current local time. Injected for tests.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._clock = clock

    def protect(self, path: str | Path) -> BackupRecord | None:
        """Back up ``path`` if it exists.

        Returns:
            The BackupRecord, or None when there was nothing to protect.

        Raises:
            OSError: If the copy cannot be made. The caller must not
                overwrite the original in that case.
        """
        original = Path(path)
        if not original.exists() and not original.is_symlink():
            logger.debug("Nothing to back up at %s", original)
            return None

        now = self._clock()
        backup = self._free_name(original, now.strftime(TIMESTAMP_FORMAT))

        if original.is_dir():
            shutil.copytree(original, backup, symlinks=True)
        elif original.is_symlink() and not original.exists():
            # Dangling link: keep the link itself
            shutil.copy2(original, backup, follow_symlinks=False)
        else:
            shutil.copy2(original, backup)

        record = BackupRecord(
            original_path=str(original),
            backup_path=str(backup),
            created_at=now.astimezone(UTC).isoformat(),
        )
        logger.info("Backed up %s → %s", original, backup)
        return record

    @staticmethod
    def _free_name(original: Path, stamp: str) -> Path:
        candidate = original.with_name(f"{original.name}.{stamp}")
        counter = 1
        while candidate.exists() or candidate.is_symlink():
            candidate = original.with_name(f"{original.name}.{stamp}-{counter}")
            counter += 1
        return candidate

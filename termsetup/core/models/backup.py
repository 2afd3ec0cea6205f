"""
BackupRecord — a copy taken before a user file is overwritten.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class BackupRecord(BaseModel):
    """Where a file was copied to, and when.

    Backups are never deleted by termsetup; cleaning them up is left
    to the user.
    """

    model_config = ConfigDict(frozen=True)

    original_path: str
    backup_path: str
    created_at: str

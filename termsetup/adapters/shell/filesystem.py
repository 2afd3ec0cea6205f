"""
Filesystem adapter — overwrite a user file safely.

Used for the one persisted config file termsetup owns. The existing
file is backed up before the first byte of the new one is written,
and the new content lands via rename so a crash never leaves half a
file behind.
"""

from __future__ import annotations

import glob
import logging
import os
import tempfile
from pathlib import Path

from termsetup.adapters.base import Adapter, ExecutionContext
from termsetup.core.models.action import Receipt
from termsetup.core.services.backup import BackupManager

logger = logging.getLogger(__name__)


class FilesystemAdapter(Adapter):
    """Write files with an optional backup of what they replace.

    Action params:
        path (str): Target file.
        content (str): New content.
        backup (bool): Protect the existing file first (default: True).
        purge (list[str]): Glob patterns of stale files to delete once
            the write succeeded (e.g. zsh completion dumps).
    """

    def __init__(self, backup_manager: BackupManager | None = None):
        self._backups = backup_manager or BackupManager()

    @property
    def name(self) -> str:
        return "filesystem"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        if not params.get("path"):
            return False, "Missing required param: 'path'"
        if "content" not in params:
            return False, "Missing required param: 'content'"
        target = Path(os.path.expanduser(params["path"]))
        if target.is_dir():
            return False, f"Target is a directory: {target}"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        target = Path(os.path.expanduser(params["path"]))
        content: str = params["content"]

        try:
            # A symlinked dotfile is written through, the link stays in place
            destination = target.resolve() if target.is_symlink() else target
            record = None
            if params.get("backup", True):
                record = self._backups.protect(target)

            _atomic_write(destination, content)
            purged = _purge(params.get("purge", []))
        except (OSError, RuntimeError) as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Filesystem error: {e}",
                metadata={"path": str(target)},
            )

        output = f"Wrote {len(content.encode('utf-8'))} bytes to {destination}"
        if record:
            output += f" (previous version saved as {record.backup_path})"
        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=output,
            metadata={
                "path": str(target),
                "written_to": str(destination),
                "backup": record.model_dump() if record else None,
                "purged": purged,
            },
        )


def _atomic_write(target: Path, content: str) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    mode = target.stat().st_mode & 0o777 if target.exists() else 0o644
    fd, tmp_path = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.chmod(tmp, mode)
        tmp.replace(target)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


def _purge(patterns: list[str]) -> list[str]:
    removed: list[str] = []
    for pattern in patterns:
        for match in glob.glob(os.path.expanduser(pattern)):
            path = Path(match)
            if path.is_file():
                path.unlink()
                removed.append(match)
    if removed:
        logger.info("Removed %d stale file(s)", len(removed))
    return removed

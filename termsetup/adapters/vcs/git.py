"""
Git adapter — shallow clones of frameworks, plugins and tools.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from termsetup.adapters.base import Adapter, ExecutionContext
from termsetup.adapters.shell.runner import run_subprocess
from termsetup.core.models.action import Receipt

logger = logging.getLogger(__name__)


class GitAdapter(Adapter):
    """Clone repositories with the git CLI.

    Action params:
        operation (str): Only 'clone' is supported.
        url (str): Repository URL.
        dest (str): Target directory; must not exist or be empty
            unless ``replace`` is set.
        depth (int): Clone depth (default: 1, 0 for full history).
        replace (bool): Remove a leftover dest directory before cloning
            (default: False).
    """

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "clone")
        if operation != "clone":
            return False, f"Unknown operation '{operation}'. Valid: clone"
        if not params.get("url"):
            return False, "Missing required param: 'url'"
        if not params.get("dest"):
            return False, "Missing required param: 'dest'"

        dest = Path(os.path.expanduser(params["dest"]))
        if dest.exists() and not dest.is_dir():
            return False, f"Destination exists and is not a directory: {dest}"
        if dest.is_dir() and not params.get("replace", False) and any(dest.iterdir()):
            return False, f"Destination already exists and is not empty: {dest}"
        if not self.is_available():
            return False, "git not found on PATH"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        url: str = params["url"]
        dest = Path(os.path.expanduser(params["dest"]))
        depth = int(params.get("depth", 1))

        try:
            if params.get("replace", False) and dest.is_dir():
                logger.warning("Removing leftover %s before cloning", dest)
                shutil.rmtree(dest)
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Cannot prepare {dest}: {e}",
                metadata={"url": url, "dest": str(dest)},
            )

        cmd = ["git", "clone"]
        if depth > 0:
            cmd += ["--depth", str(depth)]
        cmd += [url, str(dest)]

        result = run_subprocess(cmd, timeout=context.effective_timeout)
        if not result["ok"]:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=result["error"],
                metadata={"url": url, "dest": str(dest), "stderr": result.get("stderr", "")},
            )

        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=f"Cloned {url} into {dest}",
            metadata={"url": url, "dest": str(dest)},
        )

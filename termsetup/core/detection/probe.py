"""
Capability probe — is this thing already on the host?

Pure queries. Nothing here changes host state, and absence is a
normal ``False``, never an exception.
"""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
from collections.abc import Callable, Sequence
from pathlib import Path

from termsetup.core.models.capability import Capability, CapabilityKind

logger = logging.getLogger(__name__)


def current_login_shell() -> str:
    """Login shell of the current user from the passwd database.

    Falls back to ``$SHELL`` where there is no passwd database.
    """
    if hasattr(os, "getuid"):
        import pwd

        try:
            return pwd.getpwuid(os.getuid()).pw_shell
        except KeyError:
            pass
    return os.environ.get("SHELL", "")


def file_sha256(path: Path) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


class CapabilityProbe:
    """Answers ``exists(capability)`` for the four capability kinds.

    Args:
        extra_paths: Directories searched for executables in addition
            to ``$PATH`` (installers such as Oh My Posh drop binaries
            in ``~/.local/bin``, which is often not on PATH yet).
        login_shell: Returns the current login shell path. Injected
            so tests don't depend on the passwd database.
    """

    def __init__(
        self,
        extra_paths: Sequence[str] = (),
        login_shell: Callable[[], str] = current_login_shell,
    ):
        self._extra_paths = list(extra_paths)
        self._login_shell = login_shell

    def exists(self, capability: Capability) -> bool:
        kind = capability.kind
        if kind == CapabilityKind.EXECUTABLE:
            names = (capability.identifier, *capability.alternatives)
            return any(self._resolve_executable(n) is not None for n in names)

        if kind == CapabilityKind.DIRECTORY:
            return _expand(capability.identifier).is_dir()

        if kind == CapabilityKind.NON_EMPTY_FILE:
            return self._non_empty_file(_expand(capability.identifier), capability.sha256)

        if kind == CapabilityKind.LOGIN_SHELL:
            shell = self._login_shell() or ""
            return os.path.basename(shell) == capability.identifier

        logger.debug("Unknown capability kind: %s", kind)
        return False

    def _search_path(self) -> str:
        parts = [os.environ.get("PATH", "")]
        parts.extend(self._extra_paths)
        return os.pathsep.join(p for p in parts if p)

    def _resolve_executable(self, name: str) -> str | None:
        # Explicit paths are checked directly, bare names go through PATH
        if "/" in name or name.startswith("~"):
            path = _expand(name)
            if path.is_file() and os.access(path, os.X_OK):
                return str(path)
            return None
        return shutil.which(name, path=self._search_path())

    @staticmethod
    def _non_empty_file(path: Path, sha256: str | None) -> bool:
        try:
            if not path.is_file() or path.stat().st_size == 0:
                return False
            if sha256 is None:
                return True
            return file_sha256(path) == sha256
        except OSError as e:
            logger.debug("Cannot inspect %s: %s", path, e)
            return False


def _expand(raw: str) -> Path:
    return Path(os.path.expanduser(os.path.expandvars(raw)))

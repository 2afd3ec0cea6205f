"""
Core subprocess runner.

The single place where ``subprocess.run`` is called. The shell,
package and git adapters all go through here, so timeouts, sudo
prefixing and output trimming behave the same everywhere.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import time
from typing import Any

logger = logging.getLogger(__name__)

_OUTPUT_TAIL = 2000


def _is_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


def _fmt_cmd(cmd: list[str] | str) -> str:
    if isinstance(cmd, str):
        return cmd
    return " ".join(shlex.quote(a) for a in cmd)


def run_subprocess(
    cmd: list[str] | str,
    *,
    sudo: bool = False,
    timeout: int = 120,
    env_overrides: dict[str, str] | None = None,
    cwd: str | None = None,
    interactive: bool = False,
) -> dict[str, Any]:
    """Run a command and report the outcome as a dict.

    Args:
        cmd: Argument list, or a string to run through ``/bin/sh``.
        sudo: Prefix with ``sudo`` unless already root. Only valid for
            argument lists.
        timeout: Seconds before the command is killed and reported failed.
        env_overrides: Extra environment variables (values may reference
            other variables, e.g. ``$HOME``).
        cwd: Working directory.
        interactive: Leave stdin/stdout/stderr attached to the terminal
            (for ``chsh`` and password prompts) instead of capturing.

    Returns:
        ``{"ok": True, "stdout": "...", "elapsed_ms": N}`` on success,
        ``{"ok": False, "error": "...", ...}`` on failure.
    """
    use_shell = isinstance(cmd, str)

    if sudo and not _is_root():
        if use_shell:
            return {"ok": False, "error": "sudo is only supported for argument lists"}
        if shutil.which("sudo") is None:
            return {"ok": False, "error": "Root privileges required but sudo is not available"}
        cmd = ["sudo", *cmd]

    env = os.environ.copy()
    if env_overrides:
        for key, value in env_overrides.items():
            env[key] = os.path.expandvars(value)

    logger.debug("CMD %s (cwd=%s, timeout=%ss)", _fmt_cmd(cmd), cwd, timeout)
    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            shell=use_shell,
            capture_output=not interactive,
            text=True,
            timeout=timeout,
            env=env,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired:
        return {"ok": False, "error": f"Command timed out ({timeout}s): {_fmt_cmd(cmd)}"}
    except FileNotFoundError as e:
        return {"ok": False, "error": f"Command not found: {e.filename or _fmt_cmd(cmd)}"}
    except OSError as e:
        logger.debug("Subprocess error for %s: %s", _fmt_cmd(cmd), e)
        return {"ok": False, "error": str(e)}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = (result.stdout or "")[-_OUTPUT_TAIL:]
    stderr = (result.stderr or "")[-_OUTPUT_TAIL:]

    if stdout:
        logger.debug("STDOUT %s", stdout.strip())
    if stderr:
        logger.debug("STDERR %s", stderr.strip())

    if result.returncode == 0:
        return {"ok": True, "stdout": stdout, "elapsed_ms": elapsed_ms}

    return {
        "ok": False,
        "error": f"Command failed (exit {result.returncode}): {_fmt_cmd(cmd)}",
        "returncode": result.returncode,
        "stderr": stderr,
        "stdout": stdout,
        "elapsed_ms": elapsed_ms,
    }

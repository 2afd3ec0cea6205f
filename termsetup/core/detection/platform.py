"""
Platform detection — which OS are we on, and which package manager.

The OS comes from ``$OSTYPE`` when the shell exports it, otherwise from
``sys.platform``. Anything that is not Linux, macOS or a Windows POSIX
layer (MSYS, Cygwin) is rejected before a single step runs.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from collections.abc import Callable, Mapping
from pathlib import Path

from termsetup.core.errors import UnsupportedPlatform
from termsetup.core.models.platform import OSName, Platform

logger = logging.getLogger(__name__)

# Probe order matters: the first manager found wins.
PACKAGE_MANAGERS: dict[str, list[tuple[str, str]]] = {
    "linux": [
        ("apt", "apt-get"),
        ("yum", "yum"),
        ("pacman", "pacman"),
        ("dnf", "dnf"),
    ],
    "macos": [("brew", "brew")],
    "windows": [],
}

_PROC_VERSION = Path("/proc/version")
_OS_RELEASE = Path("/etc/os-release")


def classify_ostype(ostype: str) -> OSName:
    """Map an OSTYPE / sys.platform string to a platform name.

    Raises:
        UnsupportedPlatform: If the signal matches nothing we support.
    """
    value = ostype.lower()
    if value.startswith("linux"):
        return "linux"
    if value.startswith("darwin"):
        return "macos"
    if value.startswith(("msys", "cygwin", "win32")):
        return "windows"
    raise UnsupportedPlatform(ostype)


def detect_package_manager(
    os_name: OSName,
    which: Callable[[str], str | None] = shutil.which,
) -> str | None:
    """Return the first available package manager id for the OS."""
    for pm_id, binary in PACKAGE_MANAGERS.get(os_name, []):
        if which(binary):
            return pm_id
    return None


def _detect_wsl(proc_version: Path) -> bool:
    try:
        text = proc_version.read_text(encoding="utf-8").lower()
    except OSError:
        return False
    return "microsoft" in text or "wsl" in text


def _detect_distro(os_release: Path) -> str | None:
    try:
        with open(os_release, encoding="utf-8") as f:
            for line in f:
                if line.startswith("PRETTY_NAME="):
                    return line.split("=", 1)[1].strip().strip('"')
    except OSError:
        return None
    return None


def detect_platform(
    environ: Mapping[str, str] | None = None,
    sys_platform: str | None = None,
    which: Callable[[str], str | None] = shutil.which,
    proc_version: Path = _PROC_VERSION,
    os_release: Path = _OS_RELEASE,
) -> Platform:
    """Detect the host platform.

    Args:
        environ: Environment to read ``OSTYPE`` from (default: os.environ).
        sys_platform: Override for ``sys.platform``.
        which: Executable lookup used to find the package manager.
        proc_version: Path used for WSL detection.
        os_release: Path used for the distro name.

    Raises:
        UnsupportedPlatform: If the OS is not linux, macOS or MSYS/Cygwin.
    """
    env = os.environ if environ is None else environ
    ostype = env.get("OSTYPE") or sys_platform or sys.platform
    os_name = classify_ostype(ostype)

    is_wsl = False
    distro = None
    if os_name == "linux":
        is_wsl = _detect_wsl(proc_version)
        distro = _detect_distro(os_release)

    platform = Platform(
        os=os_name,
        ostype=ostype,
        package_manager=detect_package_manager(os_name, which),
        is_wsl=is_wsl,
        distro=distro,
    )
    logger.info(
        "Detected platform %s (package manager: %s)",
        platform.label,
        platform.package_manager or "none",
    )
    return platform

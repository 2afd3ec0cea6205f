"""
Package manager adapter — apt-get, yum, pacman, dnf, brew.

Turns "install these packages with that manager" into the right
command line, and runs it with sudo where the manager needs root.
"""

from __future__ import annotations

import logging
import shutil

from termsetup.adapters.base import Adapter, ExecutionContext
from termsetup.adapters.shell.runner import run_subprocess
from termsetup.core.models.action import Receipt

logger = logging.getLogger(__name__)

# Binary each manager id runs.
MANAGER_BINARIES: dict[str, str] = {
    "apt": "apt-get",
    "yum": "yum",
    "pacman": "pacman",
    "dnf": "dnf",
    "brew": "brew",
}

# Managers that run as a regular user.
_NO_SUDO = {"brew"}


def build_install_cmd(packages: list[str], pm: str) -> list[str]:
    """Build a package-install command for a list of packages.

    Raises:
        ValueError: For an unknown package manager id.
    """
    if pm == "apt":
        return ["apt-get", "install", "-y", *packages]
    if pm == "yum":
        return ["yum", "install", "-y", *packages]
    if pm == "dnf":
        return ["dnf", "install", "-y", *packages]
    if pm == "pacman":
        return ["pacman", "-S", "--noconfirm", "--needed", *packages]
    if pm == "brew":
        return ["brew", "install", *packages]
    raise ValueError(f"No install command for package manager: {pm}")


def build_refresh_cmd(pm: str) -> list[str]:
    """Build the command that refreshes the manager's package index."""
    if pm == "apt":
        return ["apt-get", "update"]
    if pm in ("yum", "dnf"):
        return [pm, "makecache"]
    if pm == "pacman":
        return ["pacman", "-Sy", "--noconfirm"]
    if pm == "brew":
        return ["brew", "update"]
    raise ValueError(f"No refresh command for package manager: {pm}")


class PackageManagerAdapter(Adapter):
    """Install system packages.

    Action params:
        manager (str): Package manager id (apt, yum, pacman, dnf, brew).
        packages (list[str]): Packages to install.
        refresh (bool): Refresh the package index before installing.
    """

    @property
    def name(self) -> str:
        return "package"

    def is_available(self) -> bool:
        return any(shutil.which(b) for b in MANAGER_BINARIES.values())

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        pm = params.get("manager", "")
        if pm not in MANAGER_BINARIES:
            return False, f"Unknown package manager '{pm}'. Valid: {', '.join(sorted(MANAGER_BINARIES))}"
        packages = params.get("packages") or []
        if not packages:
            return False, "Missing required param: 'packages'"
        if shutil.which(MANAGER_BINARIES[pm]) is None:
            return False, f"{MANAGER_BINARIES[pm]} not found on PATH"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        pm: str = params["manager"]
        packages: list[str] = list(params["packages"])
        sudo = pm not in _NO_SUDO
        timeout = context.effective_timeout

        if params.get("refresh"):
            refreshed = run_subprocess(build_refresh_cmd(pm), sudo=sudo, timeout=timeout)
            if not refreshed["ok"]:
                return Receipt.failure(
                    adapter=self.name,
                    action_id=context.action.id,
                    error=f"Package index refresh failed: {refreshed['error']}",
                    metadata={"manager": pm, "stderr": refreshed.get("stderr", "")},
                )

        result = run_subprocess(build_install_cmd(packages, pm), sudo=sudo, timeout=timeout)
        if not result["ok"]:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=result["error"],
                metadata={
                    "manager": pm,
                    "packages": packages,
                    "stderr": result.get("stderr", ""),
                },
            )

        logger.info("Installed %s via %s", " ".join(packages), pm)
        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=f"Installed {' '.join(packages)} via {pm}",
            metadata={"manager": pm, "packages": packages},
        )

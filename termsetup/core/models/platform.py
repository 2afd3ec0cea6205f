"""
Platform model — the detected host, passed explicitly to step builders.

Nothing reads the OS from a global: detection produces one Platform
value and the step catalog is built from it.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

OSName = Literal["linux", "macos", "windows"]


class Platform(BaseModel):
    """Operating system and package manager of the host."""

    model_config = ConfigDict(frozen=True)

    os: OSName
    ostype: str = ""                    # raw signal the OS was derived from
    package_manager: str | None = None  # apt, yum, pacman, dnf, brew
    is_wsl: bool = False
    distro: str | None = None

    @property
    def label(self) -> str:
        parts = [self.os]
        if self.distro:
            parts.append(f"({self.distro})")
        if self.is_wsl:
            parts.append("[WSL]")
        return " ".join(parts)

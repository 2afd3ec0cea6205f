"""
Settings model — user-tunable knobs, loaded from config.yml.

Every field has a default, so an absent config file is a valid
configuration. Paths may use ``~`` (resolved against ``home``) and
environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_ACTION_TIMEOUT = 900  # seconds

DEFAULT_THEMES = [
    "bubblesextra",
    "bubbles",
    "powerlevel10k_rainbow",
    "atomic",
    "dracula",
]

DEFAULT_PLUGINS = {
    "zsh-autosuggestions": "https://github.com/zsh-users/zsh-autosuggestions",
    "zsh-syntax-highlighting": "https://github.com/zsh-users/zsh-syntax-highlighting.git",
}


class Settings(BaseModel):
    """Provisioning configuration."""

    home: str = Field(default_factory=lambda: str(Path.home()))
    action_timeout: int = Field(default=DEFAULT_ACTION_TIMEOUT, gt=0)

    # ── What to do ───────────────────────────────────────────────
    change_shell: bool = True
    skip: list[str] = Field(default_factory=list)
    themes: list[str] = Field(default_factory=lambda: list(DEFAULT_THEMES))
    plugins: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_PLUGINS))

    # ── Where things live ────────────────────────────────────────
    extra_paths: list[str] = Field(default_factory=lambda: ["~/.local/bin"])
    zshrc_path: str = "~/.zshrc"
    oh_my_zsh_dir: str = "~/.oh-my-zsh"
    zsh_custom_dir: str | None = None   # default: $ZSH_CUSTOM or <oh_my_zsh_dir>/custom
    theme_dir: str = "~/.cache/oh-my-posh/themes"

    def resolve(self, path: str) -> Path:
        """Expand env vars and ``~`` (against ``home``) in a path."""
        expanded = os.path.expandvars(path)
        if expanded == "~":
            return Path(self.home)
        if expanded.startswith("~/"):
            return Path(self.home) / expanded[2:]
        return Path(expanded)

    @property
    def plugin_dir(self) -> Path:
        custom = self.zsh_custom_dir or os.environ.get("ZSH_CUSTOM")
        if custom:
            return self.resolve(custom) / "plugins"
        return self.resolve(self.oh_my_zsh_dir) / "custom" / "plugins"

    @property
    def search_paths(self) -> list[str]:
        """Extra directories the probe searches for executables."""
        return [str(self.resolve(p)) for p in self.extra_paths]

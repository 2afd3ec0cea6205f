"""
Step catalog — the terminal environment, as an ordered list of steps.

Built from an explicit Platform value and the user's Settings. The
order is significant: the framework must exist before its plugins,
the packages before anything that shells out to curl or git, and the
config file is written after everything it refers to.

    pkg:*  →  oh-my-zsh  →  plugin:*  →  oh-my-posh  →  theme:*
           →  fzf  →  ls-alternative  →  neovim  →  zshrc  →  default-shell
"""

from __future__ import annotations

import fnmatch
import logging
from typing import Any

from termsetup.core.data import load_zshrc_template, zshrc_digest
from termsetup.core.models.action import Action
from termsetup.core.models.capability import Capability
from termsetup.core.models.platform import Platform
from termsetup.core.models.settings import Settings
from termsetup.core.models.step import ProvisioningStep

logger = logging.getLogger(__name__)

OH_MY_ZSH_INSTALLER = "https://raw.githubusercontent.com/ohmyzsh/ohmyzsh/master/tools/install.sh"
OH_MY_ZSH_REPO = "https://github.com/ohmyzsh/ohmyzsh.git"
OH_MY_POSH_INSTALLER = "https://ohmyposh.dev/install.sh"
OH_MY_POSH_FORMULA = "jandedobbeleer/oh-my-posh/oh-my-posh"
THEME_URL = "https://raw.githubusercontent.com/JanDeDobbeleer/oh-my-posh/main/themes/{name}.omp.json"
FZF_REPO = "https://github.com/junegunn/fzf.git"
FZF_INSTALL_FLAGS = ["--key-bindings", "--completion", "--no-update-rc"]

# (logical name, executable that proves it is installed, required)
BASE_PACKAGES: list[tuple[str, str, bool]] = [
    ("zsh", "zsh", True),
    ("curl", "curl", True),
    ("git", "git", True),
    ("wget", "wget", False),
    ("unzip", "unzip", False),
]

# Logical names whose package name differs per manager. A manager
# missing from the map has no package for it.
PACKAGE_NAMES: dict[str, dict[str, list[str]]] = {
    "build-tools": {
        "apt": ["build-essential"],
        "yum": ["gcc", "gcc-c++", "make"],
        "dnf": ["gcc", "gcc-c++", "make"],
        "pacman": ["base-devel"],
    },
}

LS_ALTERNATIVES = ["eza", "exa", "lsd"]
_LS_UNPACKAGED = {"yum": {"eza"}}

_CHANGE_SHELL_SCRIPT = """\
zsh_path="$(command -v zsh)" || { echo "zsh not found" >&2; exit 1; }
if [ "$(id -u)" -eq 0 ]; then SUDO=""; else SUDO="sudo"; fi
if ! grep -qxF "$zsh_path" /etc/shells; then
    echo "$zsh_path" | $SUDO tee -a /etc/shells >/dev/null || exit 1
fi
chsh -s "$zsh_path"
"""


def package_names(logical: str, pm: str | None) -> list[str] | None:
    """Concrete package names for a logical package, or None if unavailable."""
    if pm is None:
        return None
    if logical in PACKAGE_NAMES:
        return PACKAGE_NAMES[logical].get(pm)
    return [logical]


def _action(step: str, n: int, adapter: str, name: str, **params: Any) -> Action:
    return Action(id=f"{step}#{n}", name=name, adapter=adapter, params=params)


def _pkg_actions(step: str, pm: str | None, packages: list[str] | None, start: int = 1) -> list[Action]:
    """Install, then refresh-index-and-install as the fallback."""
    if pm is None or not packages:
        return []
    joined = " ".join(packages)
    return [
        _action(step, start, "package", f"{pm} install {joined}",
                manager=pm, packages=packages),
        _action(step, start + 1, "package", f"{pm} refresh + install {joined}",
                manager=pm, packages=packages, refresh=True),
    ]


# ── Steps ───────────────────────────────────────────────────────


def package_step(logical: str, probe: str, platform: Platform, required: bool) -> ProvisioningStep:
    name = f"pkg:{logical}"
    pm = platform.package_manager
    return ProvisioningStep.chain(
        name,
        _pkg_actions(name, pm, package_names(logical, pm)),
        precondition=Capability.executable(probe),
        required=required,
        description=f"Install {logical}",
    )


def oh_my_zsh_step(settings: Settings) -> ProvisioningStep:
    name = "oh-my-zsh"
    dest = settings.resolve(settings.oh_my_zsh_dir)
    installer = _action(
        name, 1, "shell", "official installer",
        command=["bash", "-c", f'installer="$(curl -fsSL {OH_MY_ZSH_INSTALLER})" && sh -c "$installer"'],
        env={"RUNZSH": "no", "CHSH": "no", "KEEP_ZSHRC": "yes", "ZSH": str(dest)},
    )
    # Anything at dest by now was left behind by the failed installer
    clone = _action(name, 2, "git", "git clone", url=OH_MY_ZSH_REPO, dest=str(dest), replace=True)
    return ProvisioningStep.chain(
        name,
        [installer, clone],
        precondition=Capability.directory(str(dest)),
        required=True,
        description="Install the Oh My Zsh framework",
    )


def plugin_steps(settings: Settings) -> list[ProvisioningStep]:
    steps = []
    for plugin, url in settings.plugins.items():
        name = f"plugin:{plugin}"
        dest = settings.plugin_dir / plugin
        steps.append(ProvisioningStep.chain(
            name,
            [_action(name, 1, "git", "git clone", url=url, dest=str(dest))],
            precondition=Capability.directory(str(dest)),
            description=f"Install the {plugin} plugin",
        ))
    return steps


def oh_my_posh_step(platform: Platform, settings: Settings) -> ProvisioningStep:
    name = "oh-my-posh"
    bindir = settings.resolve("~/.local/bin")
    script = (
        f'mkdir -p "{bindir}" && set -o pipefail && '
        f'curl -fsSL {OH_MY_POSH_INSTALLER} | bash -s -- -d "{bindir}"'
    )

    units: list[Action] = []
    if platform.os == "macos" and platform.package_manager == "brew":
        units.append(_action(name, 1, "package", f"brew install {OH_MY_POSH_FORMULA}",
                             manager="brew", packages=[OH_MY_POSH_FORMULA]))
    units.append(_action(name, len(units) + 1, "shell", "install.sh", command=["bash", "-c", script]))

    return ProvisioningStep.chain(
        name,
        units,
        precondition=Capability.executable("oh-my-posh", str(bindir / "oh-my-posh")),
        description="Install the Oh My Posh prompt engine",
    )


def theme_steps(settings: Settings) -> list[ProvisioningStep]:
    theme_dir = settings.resolve(settings.theme_dir)
    steps = []
    for theme in settings.themes:
        name = f"theme:{theme}"
        dest = theme_dir / f"{theme}.omp.json"
        steps.append(ProvisioningStep.chain(
            name,
            [_action(name, 1, "download", "download", url=THEME_URL.format(name=theme), dest=str(dest))],
            precondition=Capability.non_empty_file(str(dest)),
            description=f"Download the {theme} prompt theme",
        ))
    return steps


def fzf_step(platform: Platform, settings: Settings) -> ProvisioningStep:
    name = "fzf"
    fzf_home = settings.resolve("~/.fzf")
    installer = [str(fzf_home / "install"), *FZF_INSTALL_FLAGS]

    from_source = ProvisioningStep.chain(
        "fzf:source",
        [
            _action("fzf:source", 1, "shell", "git clone + install",
                    commands=[["git", "clone", "--depth", "1", FZF_REPO, str(fzf_home)], installer]),
            _action("fzf:source", 2, "shell", "install from existing checkout", commands=[installer]),
        ],
        precondition=Capability.executable(str(fzf_home / "bin" / "fzf")),
        description="Install fzf from its git repository",
    )

    units: list[Action | ProvisioningStep] = []
    pm = platform.package_manager
    if platform.os == "macos" and pm == "brew":
        flags = " ".join(FZF_INSTALL_FLAGS)
        units.append(_action(name, 1, "shell", "brew install fzf + shell integration", commands=[
            ["brew", "install", "fzf"],
            ["bash", "-c", f'"$(brew --prefix)/opt/fzf/install" {flags}'],
        ]))
    elif platform.os == "linux":
        units.extend(_pkg_actions(name, pm, package_names("fzf", pm)))
    units.append(from_source)

    return ProvisioningStep.chain(
        name,
        units,
        precondition=Capability.executable("fzf", str(fzf_home / "bin" / "fzf")),
        description="Install the fzf fuzzy finder",
    )


def ls_alternative_step(platform: Platform) -> ProvisioningStep:
    name = "ls-alternative"
    pm = platform.package_manager
    units: list[Action] = []
    if pm is not None and platform.os != "windows":
        skip = _LS_UNPACKAGED.get(pm, set())
        for tool in LS_ALTERNATIVES:
            if tool in skip:
                continue
            units.append(_action(name, len(units) + 1, "package", f"{pm} install {tool}",
                                 manager=pm, packages=[tool]))
    return ProvisioningStep.chain(
        name,
        units,
        precondition=Capability.executable(*LS_ALTERNATIVES),
        description="Install a modern ls replacement (eza, exa or lsd)",
    )


def neovim_step(platform: Platform) -> ProvisioningStep:
    name = "neovim"
    pm = platform.package_manager if platform.os != "windows" else None
    return ProvisioningStep.chain(
        name,
        _pkg_actions(name, pm, package_names("neovim", pm)),
        precondition=Capability.executable("nvim"),
        description="Install the Neovim editor",
    )


def zshrc_step(settings: Settings) -> ProvisioningStep:
    name = "zshrc"
    path = settings.resolve(settings.zshrc_path)
    write = _action(
        name, 1, "filesystem", f"write {path}",
        path=str(path),
        content=load_zshrc_template(),
        backup=True,
        purge=[f"{settings.resolve('~/.zcompdump')}*"],
    )
    return ProvisioningStep.chain(
        name,
        [write],
        precondition=Capability.non_empty_file(str(path), sha256=zshrc_digest()),
        required=True,
        description="Write the managed ~/.zshrc (previous file is backed up)",
    )


def default_shell_step() -> ProvisioningStep:
    name = "default-shell"
    return ProvisioningStep.chain(
        name,
        [_action(name, 1, "shell", "chsh -s zsh",
                 command=["bash", "-c", _CHANGE_SHELL_SCRIPT], interactive=True)],
        precondition=Capability.login_shell("zsh"),
        description="Make zsh the login shell",
    )


# ── Catalog ─────────────────────────────────────────────────────


def build_steps(
    platform: Platform,
    settings: Settings,
    change_shell: bool | None = None,
    skip: list[str] | None = None,
) -> list[ProvisioningStep]:
    """Build the full, ordered step list for this host.

    Args:
        platform: Detected platform.
        settings: Loaded settings.
        change_shell: Override ``settings.change_shell``.
        skip: Extra step names (or glob patterns like ``theme:*``) to
            leave out, on top of ``settings.skip``.
    """
    steps: list[ProvisioningStep] = [
        package_step(logical, probe, platform, required)
        for logical, probe, required in BASE_PACKAGES
    ]
    if platform.os == "linux":
        steps.append(package_step("build-tools", "make", platform, required=False))

    steps.append(oh_my_zsh_step(settings))
    steps.extend(plugin_steps(settings))
    steps.append(oh_my_posh_step(platform, settings))
    steps.extend(theme_steps(settings))
    steps.append(fzf_step(platform, settings))
    steps.append(ls_alternative_step(platform))
    steps.append(neovim_step(platform))
    steps.append(zshrc_step(settings))

    if settings.change_shell if change_shell is None else change_shell:
        steps.append(default_shell_step())

    patterns = [*settings.skip, *(skip or [])]
    if patterns:
        kept = [s for s in steps if not any(fnmatch.fnmatchcase(s.name, p) for p in patterns)]
        logger.info("Skipping %d step(s) by configuration", len(steps) - len(kept))
        steps = kept

    return steps

"""
Tests for backup, report rendering and the step catalog.
"""

from datetime import datetime
from pathlib import Path

import pytest

from termsetup.core.data import load_zshrc_template, zshrc_digest
from termsetup.core.models.capability import CapabilityKind
from termsetup.core.models.platform import Platform
from termsetup.core.models.result import RunReport, StepOutcome, StepResult
from termsetup.core.models.settings import Settings
from termsetup.core.services.backup import BackupManager
from termsetup.core.services.catalog import (
    OH_MY_POSH_FORMULA,
    THEME_URL,
    build_steps,
    package_names,
)
from termsetup.core.services.report import render_line, render_lines, render_summary

# ── Backup ───────────────────────────────────────────────────────────


class TestBackupManager:
    def _manager(self) -> BackupManager:
        return BackupManager(clock=lambda: datetime(2024, 5, 6, 7, 8, 9))

    def test_byte_identical_copy(self, tmp_path: Path):
        original = tmp_path / ".zshrc"
        original.write_bytes(b"\x00binary\xffcontent\n")
        record = self._manager().protect(original)

        assert record is not None
        assert record.backup_path == str(tmp_path / ".zshrc.20240506_070809")
        assert Path(record.backup_path).read_bytes() == b"\x00binary\xffcontent\n"
        assert original.exists()

    def test_nothing_to_protect(self, tmp_path: Path):
        assert self._manager().protect(tmp_path / "missing") is None
        assert list(tmp_path.iterdir()) == []

    def test_dangling_symlink_keeps_link(self, tmp_path: Path):
        original = tmp_path / ".zshrc"
        original.symlink_to(tmp_path / "dotfiles" / "zshrc")
        record = self._manager().protect(original)

        assert record is not None
        backup = Path(record.backup_path)
        assert backup.is_symlink()
        assert backup.readlink() == tmp_path / "dotfiles" / "zshrc"

    def test_live_symlink_copies_target(self, tmp_path: Path):
        real = tmp_path / "zshrc.real"
        real.write_text("mine")
        original = tmp_path / ".zshrc"
        original.symlink_to(real)
        record = self._manager().protect(original)

        backup = Path(record.backup_path)
        assert not backup.is_symlink()
        assert backup.read_text() == "mine"

    def test_same_second_collision(self, tmp_path: Path):
        original = tmp_path / ".zshrc"
        original.write_text("v1")
        first = self._manager().protect(original)
        original.write_text("v2")
        second = self._manager().protect(original)

        assert first.backup_path != second.backup_path
        assert second.backup_path.endswith(".20240506_070809-1")
        assert Path(first.backup_path).read_text() == "v1"
        assert Path(second.backup_path).read_text() == "v2"

    def test_directory(self, tmp_path: Path):
        src = tmp_path / "dir"
        src.mkdir()
        (src / "f").write_text("x")
        record = self._manager().protect(src)
        assert (Path(record.backup_path) / "f").read_text() == "x"


# ── Report ───────────────────────────────────────────────────────────


class TestReport:
    def _report(self) -> RunReport:
        report = RunReport()
        report.append(StepResult.succeeded("pkg:zsh", "via apt install zsh"))
        report.append(StepResult.skipped("oh-my-zsh", "already satisfied"))
        report.append(StepResult.degraded("ls-alternative", "all 3 action(s) failed"))
        return report

    def test_line(self):
        line = render_line(StepResult.succeeded("pkg:zsh", "via apt install zsh"))
        assert line == "✓ pkg:zsh: succeeded — via apt install zsh"

    def test_line_without_detail(self):
        assert render_line(StepResult.skipped("x")) == "⊘ x: skipped"

    def test_summary_names_problems(self):
        summary = render_summary(self._report())
        assert summary == "Summary: 1 step(s) need attention: ls-alternative (degraded)"

    def test_summary_all_ok(self):
        report = RunReport()
        report.append(StepResult.succeeded("a"))
        report.append(StepResult.skipped("b"))
        assert render_summary(report) == "Summary: all 2 step(s) OK (1 succeeded, 1 skipped)"

    def test_summary_cancelled(self):
        report = self._report()
        report.cancelled = True
        assert render_summary(report).startswith("Run cancelled. ")

    def test_lines_one_per_step_plus_summary(self):
        lines = render_lines(self._report())
        assert len(lines) == 4
        assert lines[2].startswith("⚠ ls-alternative")


# ── Catalog ──────────────────────────────────────────────────────────


def _names(steps) -> list[str]:
    return [s.name for s in steps]


class TestCatalog:
    def test_order_on_linux(self, linux: Platform, settings: Settings):
        names = _names(build_steps(linux, settings))
        assert names[:6] == ["pkg:zsh", "pkg:curl", "pkg:git", "pkg:wget", "pkg:unzip", "pkg:build-tools"]
        assert names.index("oh-my-zsh") < names.index("plugin:zsh-autosuggestions")
        assert names.index("oh-my-posh") < names.index("theme:bubblesextra")
        assert names[-2:] == ["zshrc", "default-shell"]

    def test_names_unique(self, linux: Platform, settings: Settings):
        names = _names(build_steps(linux, settings))
        assert len(names) == len(set(names))

    def test_required_steps(self, linux: Platform, settings: Settings):
        required = {s.name for s in build_steps(linux, settings) if s.required}
        assert required == {"pkg:zsh", "pkg:curl", "pkg:git", "oh-my-zsh", "zshrc"}

    def test_every_step_has_precondition(self, linux: Platform, settings: Settings):
        assert all(s.precondition is not None for s in build_steps(linux, settings))

    def test_package_step_install_then_refresh(self, linux: Platform, settings: Settings):
        step = build_steps(linux, settings)[0]
        assert [a.params.get("refresh", False) for a in step.units] == [False, True]
        assert step.primary.params == {"manager": "apt", "packages": ["zsh"]}

    def test_build_tools_names(self):
        assert package_names("build-tools", "apt") == ["build-essential"]
        assert package_names("build-tools", "pacman") == ["base-devel"]
        assert package_names("build-tools", "brew") is None
        assert package_names("zsh", None) is None

    def test_no_build_tools_on_macos(self, macos: Platform, settings: Settings):
        assert "pkg:build-tools" not in _names(build_steps(macos, settings))

    def test_macos_oh_my_posh_prefers_brew(self, macos: Platform, settings: Settings):
        step = next(s for s in build_steps(macos, settings) if s.name == "oh-my-posh")
        assert step.primary.params["packages"] == [OH_MY_POSH_FORMULA]
        assert step.fallbacks[0].adapter == "shell"

    def test_windows_package_steps_have_no_actions(self, settings: Settings):
        windows = Platform(os="windows", ostype="msys")
        step = build_steps(windows, settings)[0]
        assert step.name == "pkg:zsh"
        assert step.units == []

    def test_ls_alternatives_order(self, linux: Platform, settings: Settings):
        step = next(s for s in build_steps(linux, settings) if s.name == "ls-alternative")
        assert [a.params["packages"] for a in step.units] == [["eza"], ["exa"], ["lsd"]]
        assert step.precondition.alternatives == ("exa", "lsd")

    def test_ls_alternatives_on_yum(self, settings: Settings):
        yum = Platform(os="linux", package_manager="yum")
        step = next(s for s in build_steps(yum, settings) if s.name == "ls-alternative")
        assert [a.params["packages"] for a in step.units] == [["exa"], ["lsd"]]

    def test_oh_my_zsh_clone_replaces_installer_leftover(self, linux: Platform, settings: Settings, fake_home: Path):
        step = next(s for s in build_steps(linux, settings) if s.name == "oh-my-zsh")
        installer, clone = step.units
        assert installer.adapter == "shell"
        assert clone.adapter == "git"
        assert clone.params["dest"] == installer.params["env"]["ZSH"]
        assert clone.params["replace"] is True
        assert step.precondition.kind == CapabilityKind.DIRECTORY

    def test_plugin_clones_never_replace(self, linux: Platform, settings: Settings):
        plugins = [s for s in build_steps(linux, settings) if s.name.startswith("plugin:")]
        assert plugins
        assert all("replace" not in s.primary.params for s in plugins)

    def test_fzf_falls_back_to_source(self, linux: Platform, settings: Settings, fake_home: Path):
        step = next(s for s in build_steps(linux, settings) if s.name == "fzf")
        source = step.units[-1]
        assert source.name == "fzf:source"
        clone = source.primary.params["commands"][0]
        assert clone[:4] == ["git", "clone", "--depth", "1"]
        assert clone[-1] == str(fake_home / ".fzf")

    def test_themes(self, linux: Platform, settings: Settings, fake_home: Path):
        step = next(s for s in build_steps(linux, settings) if s.name == "theme:atomic")
        assert step.primary.params["url"] == THEME_URL.format(name="atomic")
        assert step.precondition.kind == CapabilityKind.NON_EMPTY_FILE
        assert step.primary.params["dest"] == str(fake_home / ".cache/oh-my-posh/themes/atomic.omp.json")

    def test_zshrc_step(self, linux: Platform, settings: Settings, fake_home: Path):
        step = next(s for s in build_steps(linux, settings) if s.name == "zshrc")
        assert step.precondition.sha256 == zshrc_digest()
        params = step.primary.params
        assert params["path"] == str(fake_home / ".zshrc")
        assert params["content"] == load_zshrc_template()
        assert params["backup"] is True
        assert params["purge"] == [f"{fake_home}/.zcompdump*"]

    def test_no_chsh(self, linux: Platform, settings: Settings):
        assert "default-shell" not in _names(build_steps(linux, settings, change_shell=False))
        no_shell = settings.model_copy(update={"change_shell": False})
        assert "default-shell" not in _names(build_steps(linux, no_shell))

    def test_skip_patterns(self, linux: Platform, settings: Settings):
        names = _names(build_steps(linux, settings, skip=["theme:*", "neovim"]))
        assert not any(n.startswith("theme:") for n in names)
        assert "neovim" not in names
        configured = settings.model_copy(update={"skip": ["plugin:*"]})
        assert not any(n.startswith("plugin:") for n in _names(build_steps(linux, configured)))

    @pytest.mark.parametrize("themes", [[], ["only"]])
    def test_custom_themes(self, linux: Platform, settings: Settings, themes):
        custom = settings.model_copy(update={"themes": themes})
        theme_steps = [n for n in _names(build_steps(linux, custom)) if n.startswith("theme:")]
        assert theme_steps == [f"theme:{t}" for t in themes]


class TestZshrcTemplate:
    def test_references_installed_pieces(self):
        content = load_zshrc_template()
        assert "oh-my-zsh.sh" in content
        assert "zsh-autosuggestions" in content
        assert "oh-my-posh init zsh" in content

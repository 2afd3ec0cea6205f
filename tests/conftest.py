"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from termsetup.adapters.mock import MockAdapter
from termsetup.adapters.registry import AdapterRegistry
from termsetup.core.detection.probe import CapabilityProbe
from termsetup.core.models.platform import Platform
from termsetup.core.models.settings import Settings


@pytest.fixture
def fake_home(tmp_path: Path) -> Path:
    """An empty home directory."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def settings(fake_home: Path) -> Settings:
    return Settings(home=str(fake_home), extra_paths=[])


@pytest.fixture
def linux() -> Platform:
    return Platform(os="linux", ostype="linux-gnu", package_manager="apt", distro="Ubuntu 24.04")


@pytest.fixture
def macos() -> Platform:
    return Platform(os="macos", ostype="darwin23", package_manager="brew")


@pytest.fixture
def empty_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """PATH pointing at an empty directory, so no executable resolves."""
    bindir = tmp_path / "bin"
    bindir.mkdir()
    monkeypatch.setenv("PATH", str(bindir))
    return bindir


@pytest.fixture
def probe(empty_path: Path) -> CapabilityProbe:
    """Probe that sees an empty host with bash as the login shell."""
    return CapabilityProbe(login_shell=lambda: "/bin/bash")


@pytest.fixture
def mock_adapter() -> MockAdapter:
    return MockAdapter(adapter_name="mock")


@pytest.fixture
def registry(mock_adapter: MockAdapter) -> AdapterRegistry:
    reg = AdapterRegistry()
    reg.register(mock_adapter)
    return reg


@pytest.fixture
def make_executable():
    """Factory creating an executable stub at a given path."""

    def _make(path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("#!/bin/sh\nexit 0\n")
        path.chmod(0o755)
        return path

    return _make

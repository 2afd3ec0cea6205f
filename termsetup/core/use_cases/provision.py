"""
Provision use case — the full vertical slice of a run.

Loads settings, detects the platform, builds the step catalog, runs it
through the orchestrator and hands back the report. UnsupportedPlatform
and ConfigError end up in ``result.error``; nothing here raises.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

from termsetup.adapters.registry import AdapterRegistry
from termsetup.core.config.loader import load_settings
from termsetup.core.detection.platform import detect_platform
from termsetup.core.detection.probe import CapabilityProbe
from termsetup.core.engine.executor import StepExecutor
from termsetup.core.engine.orchestrator import Orchestrator
from termsetup.core.errors import ConfigError, UnsupportedPlatform
from termsetup.core.models.platform import Platform
from termsetup.core.models.result import RunReport
from termsetup.core.models.settings import Settings
from termsetup.core.models.step import ProvisioningStep
from termsetup.core.services.catalog import build_steps

logger = logging.getLogger(__name__)


@dataclass
class ProvisionResult:
    """Result of a provisioning run."""

    report: RunReport | None = None
    platform: Platform | None = None
    settings: Settings | None = None
    steps_planned: int = 0
    dry_run: bool = False
    error: str | None = None

    @property
    def exit_code(self) -> int:
        if self.error:
            return 2
        return self.report.exit_code if self.report else 0

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        result["platform"] = self.platform.model_dump() if self.platform else None
        result["steps_planned"] = self.steps_planned
        result["dry_run"] = self.dry_run

        if self.report:
            result["report"] = self.report.to_dict()

        return result


@dataclass
class PlanEntry:
    """One step as it would run right now."""

    name: str
    description: str
    required: bool
    satisfied: bool
    precondition: str | None
    actions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "required": self.required,
            "satisfied": self.satisfied,
            "precondition": self.precondition,
            "actions": self.actions,
        }


@dataclass
class PlanResult:
    """Result of the plan use case."""

    entries: list[PlanEntry] = field(default_factory=list)
    platform: Platform | None = None
    error: str | None = None

    @property
    def pending(self) -> list[PlanEntry]:
        return [e for e in self.entries if not e.satisfied]

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "platform": self.platform.model_dump() if self.platform else None,
            "steps": [e.to_dict() for e in self.entries],
        }


def build_registry(mock_mode: bool = False) -> AdapterRegistry:
    """Registry with every adapter the step catalog refers to."""
    from termsetup.adapters.net.download import DownloadAdapter
    from termsetup.adapters.packages.manager import PackageManagerAdapter
    from termsetup.adapters.shell.command import ShellCommandAdapter
    from termsetup.adapters.shell.filesystem import FilesystemAdapter
    from termsetup.adapters.vcs.git import GitAdapter

    registry = AdapterRegistry(mock_mode=mock_mode)
    registry.register(ShellCommandAdapter())
    registry.register(PackageManagerAdapter())
    registry.register(GitAdapter())
    registry.register(DownloadAdapter())
    registry.register(FilesystemAdapter())
    return registry


def _prepare(
    config_path: Path | None,
    platform: Platform | None,
    settings: Settings | None,
    change_shell: bool | None,
    skip: list[str] | None,
) -> tuple[Platform, Settings, list[ProvisioningStep]]:
    """Settings, platform and steps. Raises ConfigError / UnsupportedPlatform."""
    if settings is None:
        settings = load_settings(config_path)
    if platform is None:
        platform = detect_platform()
    steps = build_steps(platform, settings, change_shell=change_shell, skip=skip)
    return platform, settings, steps


def run_provisioning(
    config_path: Path | None = None,
    dry_run: bool = False,
    mock_mode: bool = False,
    change_shell: bool | None = None,
    skip: list[str] | None = None,
    registry: AdapterRegistry | None = None,
    platform: Platform | None = None,
    settings: Settings | None = None,
    probe: CapabilityProbe | None = None,
    cancel_event: threading.Event | None = None,
) -> ProvisionResult:
    """Provision the terminal environment.

    Args:
        config_path: Optional explicit path to config.yml.
        dry_run: Check preconditions and validate actions, change nothing.
        mock_mode: Answer every action with a mock success.
        change_shell: Override ``settings.change_shell``.
        skip: Step names or glob patterns to leave out.
        registry: Optional pre-configured adapter registry.
        platform: Use this platform instead of detecting it.
        settings: Use these settings instead of loading config.yml.
        probe: Optional pre-configured capability probe.
        cancel_event: Set it to stop the run before the next step.

    Returns:
        ProvisionResult with the run report.
    """
    result = ProvisionResult(dry_run=dry_run)

    try:
        platform, settings, steps = _prepare(config_path, platform, settings, change_shell, skip)
    except (ConfigError, UnsupportedPlatform) as e:
        result.error = str(e)
        return result

    result.platform = platform
    result.settings = settings
    result.steps_planned = len(steps)

    if registry is None:
        registry = build_registry(mock_mode=mock_mode)
    if probe is None:
        probe = CapabilityProbe(extra_paths=settings.search_paths)

    executor = StepExecutor(registry, probe, dry_run=dry_run, timeout=settings.action_timeout)
    orchestrator = Orchestrator(executor, cancel_event=cancel_event)

    logger.info("Provisioning %d step(s) on %s", len(steps), platform.label)
    result.report = orchestrator.run(steps)
    return result


def plan_provisioning(
    config_path: Path | None = None,
    change_shell: bool | None = None,
    skip: list[str] | None = None,
    platform: Platform | None = None,
    settings: Settings | None = None,
    probe: CapabilityProbe | None = None,
) -> PlanResult:
    """List the steps and which of them are already satisfied.

    Only preconditions are checked; no adapter is touched.
    """
    result = PlanResult()

    try:
        platform, settings, steps = _prepare(config_path, platform, settings, change_shell, skip)
    except (ConfigError, UnsupportedPlatform) as e:
        result.error = str(e)
        return result

    result.platform = platform
    if probe is None:
        probe = CapabilityProbe(extra_paths=settings.search_paths)

    for step in steps:
        cap = step.precondition
        result.entries.append(PlanEntry(
            name=step.name,
            description=step.description,
            required=step.required,
            satisfied=cap is not None and probe.exists(cap),
            precondition=cap.describe() if cap else None,
            actions=[unit.label for unit in step.units],
        ))

    return result

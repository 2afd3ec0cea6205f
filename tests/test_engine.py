"""
Tests for the step executor and orchestrator.

Everything runs against MockAdapter; the probe sees a fake host.
"""

import threading
from pathlib import Path

import pytest

from termsetup.adapters.mock import MockAdapter
from termsetup.adapters.registry import AdapterRegistry
from termsetup.core.detection.probe import CapabilityProbe
from termsetup.core.engine.executor import StepExecutor
from termsetup.core.engine.orchestrator import ABORTED_DETAIL, CANCELLED_DETAIL, Orchestrator
from termsetup.core.models.action import Action, Receipt
from termsetup.core.models.capability import Capability
from termsetup.core.models.result import StepOutcome
from termsetup.core.models.step import ProvisioningStep


def _act(action_id: str, name: str = "") -> Action:
    return Action(id=action_id, name=name, adapter="mock")


def _step(name: str, *units, precondition=None, required=False) -> ProvisioningStep:
    return ProvisioningStep.chain(name, list(units), precondition=precondition, required=required)


class _CreatesDir(MockAdapter):
    """Mock that makes a directory appear, so a later probe sees it."""

    def __init__(self, path: Path):
        super().__init__(adapter_name="mock")
        self._path = path

    def execute(self, context):
        receipt = super().execute(context)
        if receipt.ok:
            self._path.mkdir(parents=True, exist_ok=True)
        return receipt


# ── Executor ─────────────────────────────────────────────────────────


class TestStepExecutor:
    def test_precondition_met_skips(self, registry, mock_adapter, tmp_path):
        step = _step("dir", _act("a"), precondition=Capability.directory(str(tmp_path)))
        result = StepExecutor(registry, CapabilityProbe()).execute(step)
        assert result.outcome == StepOutcome.SKIPPED
        assert "already satisfied" in result.detail
        assert mock_adapter.call_count == 0

    def test_primary_succeeds(self, registry, mock_adapter, probe):
        step = _step("s", _act("a", "apt install x"), _act("b"))
        result = StepExecutor(registry, probe).execute(step)
        assert result.outcome == StepOutcome.SUCCEEDED
        assert result.detail == "via apt install x"
        assert mock_adapter.called_ids == ["a"]

    def test_fallback_in_order(self, registry, mock_adapter, probe):
        mock_adapter.set_failure("a")
        mock_adapter.set_failure("b")
        step = _step("s", _act("a"), _act("b"), _act("c", "lsd"))
        result = StepExecutor(registry, probe).execute(step)
        assert result.outcome == StepOutcome.SUCCEEDED
        assert result.detail == "via fallback #2 (lsd)"
        assert mock_adapter.called_ids == ["a", "b", "c"]
        assert [r.status for r in result.attempts] == ["failed", "failed", "ok"]

    def test_optional_exhausted_is_degraded(self, registry, mock_adapter, probe):
        mock_adapter.set_failure("a")
        result = StepExecutor(registry, probe).execute(_step("s", _act("a")))
        assert result.outcome == StepOutcome.DEGRADED
        assert result.detail == "all 1 action(s) failed"

    def test_required_exhausted_is_failed(self, registry, mock_adapter, probe):
        mock_adapter.set_failure("a")
        mock_adapter.set_failure("b")
        result = StepExecutor(registry, probe).execute(_step("s", _act("a"), _act("b"), required=True))
        assert result.outcome == StepOutcome.FAILED
        assert result.detail == "all 2 action(s) failed"

    def test_no_actions(self, registry, probe):
        result = StepExecutor(registry, probe).execute(_step("s", required=True))
        assert result.outcome == StepOutcome.FAILED
        assert result.detail == "no install method available on this platform"

    def test_unknown_adapter_is_a_failed_attempt(self, registry, mock_adapter, probe):
        step = _step("s", Action(id="x", adapter="nope"), _act("a"))
        result = StepExecutor(registry, probe).execute(step)
        assert result.outcome == StepOutcome.SUCCEEDED
        assert "No adapter registered" in result.attempts[0].error

    def test_nested_step_as_fallback(self, registry, mock_adapter, probe):
        mock_adapter.set_failure("pkg")
        source = _step("fzf:source", _act("clone"), _act("install-only"))
        step = _step("fzf", _act("pkg"), source)
        result = StepExecutor(registry, probe).execute(step)
        assert result.outcome == StepOutcome.SUCCEEDED
        assert result.detail == "via fallback #1 (fzf:source)"
        assert mock_adapter.called_ids == ["pkg", "clone"]

    def test_nested_step_already_satisfied(self, registry, mock_adapter, probe, tmp_path):
        mock_adapter.set_failure("pkg")
        source = _step("src", _act("clone"), precondition=Capability.directory(str(tmp_path)))
        result = StepExecutor(registry, probe).execute(_step("outer", _act("pkg"), source))
        assert result.outcome == StepOutcome.SUCCEEDED
        assert result.detail == "src already satisfied"
        assert mock_adapter.called_ids == ["pkg"]

    def test_nested_step_exhausted(self, registry, mock_adapter, probe):
        mock_adapter.set_failure("a")
        mock_adapter.set_failure("b")
        step = _step("outer", _act("a"), _step("inner", _act("b")), required=True)
        result = StepExecutor(registry, probe).execute(step)
        assert result.outcome == StepOutcome.FAILED
        assert result.attempts[-1].adapter == "step"

    def test_dry_run_executes_nothing(self, registry, mock_adapter, probe):
        result = StepExecutor(registry, probe, dry_run=True).execute(_step("s", _act("a", "apt install x")))
        assert result.outcome == StepOutcome.SKIPPED
        assert result.detail == "[dry-run] would run apt install x"
        assert mock_adapter.call_count == 0

    def test_per_action_timeout(self, registry, mock_adapter, probe):
        action = Action(id="a", adapter="mock", params={"timeout": 7})
        StepExecutor(registry, probe, timeout=300).execute(_step("s", action))
        assert mock_adapter.call_log[0].timeout == 7


# ── Orchestrator ─────────────────────────────────────────────────────


class TestOrchestrator:
    def test_runs_in_order(self, registry, mock_adapter, probe):
        steps = [_step(n, _act(n)) for n in ("one", "two", "three")]
        report = Orchestrator(StepExecutor(registry, probe)).run(steps)
        assert [r.step_name for r in report.results] == ["one", "two", "three"]
        assert mock_adapter.called_ids == ["one", "two", "three"]
        assert report.exit_code == 0

    def test_required_failure_halts(self, registry, mock_adapter, probe):
        mock_adapter.set_failure("zsh")
        steps = [
            _step("pkg:zsh", _act("zsh"), required=True),
            _step("oh-my-zsh", _act("omz")),
            _step("zshrc", _act("rc")),
        ]
        report = Orchestrator(StepExecutor(registry, probe)).run(steps)

        assert report.outcomes == [StepOutcome.FAILED, StepOutcome.SKIPPED, StepOutcome.SKIPPED]
        assert report.results[1].detail == ABORTED_DETAIL
        assert mock_adapter.called_ids == ["zsh"]
        assert report.exit_code == 1

    def test_optional_failure_continues(self, registry, mock_adapter, probe):
        mock_adapter.set_failure("eza")
        steps = [_step("ls-alternative", _act("eza")), _step("neovim", _act("nvim"))]
        report = Orchestrator(StepExecutor(registry, probe)).run(steps)
        assert report.outcomes == [StepOutcome.DEGRADED, StepOutcome.SUCCEEDED]
        assert report.exit_code == 0

    def test_duplicate_names_rejected(self, registry, probe):
        with pytest.raises(ValueError, match="Duplicate step name"):
            Orchestrator(StepExecutor(registry, probe)).run([_step("a"), _step("a")])

    def test_cancel_before_start(self, registry, mock_adapter, probe):
        event = threading.Event()
        event.set()
        report = Orchestrator(StepExecutor(registry, probe), cancel_event=event).run(
            [_step("a", _act("a")), _step("b", _act("b"))]
        )
        assert report.cancelled
        assert report.outcomes == [StepOutcome.SKIPPED, StepOutcome.SKIPPED]
        assert report.results[0].detail == CANCELLED_DETAIL
        assert mock_adapter.call_count == 0
        assert report.exit_code == 130

    def test_cancel_between_steps(self, probe):
        orchestrator: Orchestrator | None = None

        class CancelOnFirst(MockAdapter):
            def execute(self, context):
                orchestrator.cancel()
                return super().execute(context)

        mock = CancelOnFirst()
        reg = AdapterRegistry()
        reg.register(mock)
        orchestrator = Orchestrator(StepExecutor(reg, probe))
        report = orchestrator.run([_step("a", _act("a")), _step("b", _act("b"))])

        assert report.outcomes == [StepOutcome.SUCCEEDED, StepOutcome.SKIPPED]
        assert report.results[1].detail == CANCELLED_DETAIL
        assert mock.called_ids == ["a"]

    def test_second_run_is_all_skipped(self, probe, tmp_path):
        target = tmp_path / "plugins" / "zsh-autosuggestions"
        reg = AdapterRegistry()
        reg.register(_CreatesDir(target))
        steps = [_step("plugin", _act("clone"), precondition=Capability.directory(str(target)))]
        executor = StepExecutor(reg, probe)

        first = Orchestrator(executor).run(steps)
        second = Orchestrator(executor).run(steps)

        assert first.outcomes == [StepOutcome.SUCCEEDED]
        assert second.outcomes == [StepOutcome.SKIPPED]

    def test_report_keeps_attempt_receipts(self, registry, mock_adapter, probe):
        mock_adapter.set_response(
            "a", Receipt.failure(adapter="mock", action_id="a", error="E: Unable to locate package")
        )
        report = Orchestrator(StepExecutor(registry, probe)).run([_step("s", _act("a"), _act("b"))])
        assert report.results[0].attempts[0].error == "E: Unable to locate package"

    def test_end_to_end_mixed_outcomes(self, registry, mock_adapter, probe):
        mock_adapter.set_failure("posh-script")
        steps = [
            _step("pkg:git", _act("git"), required=True),
            _step("oh-my-posh", _act("posh-script")),
            _step("zshrc", _act("write"), required=True),
        ]
        report = Orchestrator(StepExecutor(registry, probe)).run(steps)
        assert report.outcomes == [StepOutcome.SUCCEEDED, StepOutcome.DEGRADED, StepOutcome.SUCCEEDED]
        assert report.exit_code == 0

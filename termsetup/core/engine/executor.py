"""
Step executor — try the primary action, then each fallback.

This is the one shared interpreter for every "try A, else B, else C,
else warn" chain:

    precondition holds        → Skipped (nothing runs)
    primary succeeds          → Succeeded
    a fallback succeeds       → Succeeded, detail names the fallback
    everything fails          → Failed if required, else Degraded

A fallback may be a nested ProvisioningStep; it counts as succeeded
when its own result is Succeeded or Skipped.
"""

from __future__ import annotations

import logging

from termsetup.adapters.registry import AdapterRegistry
from termsetup.core.detection.probe import CapabilityProbe
from termsetup.core.errors import ActionFailed, AllActionsExhausted
from termsetup.core.models.action import Action, Receipt
from termsetup.core.models.result import StepOutcome, StepResult
from termsetup.core.models.settings import DEFAULT_ACTION_TIMEOUT
from termsetup.core.models.step import ProvisioningStep

logger = logging.getLogger(__name__)


class StepExecutor:
    """Executes a single ProvisioningStep.

    Args:
        registry: Dispatches actions to adapters.
        probe: Answers precondition checks.
        dry_run: Validate the first action that would run, execute nothing.
        timeout: Default per-action timeout in seconds.
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        probe: CapabilityProbe | None = None,
        dry_run: bool = False,
        timeout: int = DEFAULT_ACTION_TIMEOUT,
    ):
        self._registry = registry
        self._probe = probe or CapabilityProbe()
        self._dry_run = dry_run
        self._timeout = timeout

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    def execute(self, step: ProvisioningStep) -> StepResult:
        if step.precondition is not None and self._probe.exists(step.precondition):
            logger.debug("%s: %s already present", step.name, step.precondition.describe())
            return StepResult.skipped(
                step.name, f"already satisfied ({step.precondition.describe()})"
            )

        attempts: list[Receipt] = []
        try:
            return self._attempt_all(step, attempts)
        except AllActionsExhausted as e:
            if step.required:
                logger.error("%s: %s", step.name, e)
                return StepResult.failed(step.name, str(e), attempts=tuple(attempts))
            logger.warning("%s: %s (continuing)", step.name, e)
            return StepResult.degraded(step.name, str(e), attempts=tuple(attempts))

    def _attempt_all(self, step: ProvisioningStep, attempts: list[Receipt]) -> StepResult:
        units = step.units
        for index, unit in enumerate(units):
            try:
                receipt = self._attempt(unit, attempts)
            except ActionFailed as e:
                logger.info("%s: %s", step.name, e)
                continue

            if receipt.status == "skipped":
                if self._dry_run:
                    return StepResult.skipped(step.name, receipt.output, attempts=tuple(attempts))
                # A nested step whose own goal was already met
                return StepResult.succeeded(
                    step.name, f"{unit.label} already satisfied", attempts=tuple(attempts)
                )

            if index == 0:
                detail = f"via {unit.label}"
            else:
                detail = f"via fallback #{index} ({unit.label})"
            return StepResult.succeeded(step.name, detail, attempts=tuple(attempts))

        raise AllActionsExhausted(step.name, len(units))

    def _attempt(self, unit: Action | ProvisioningStep, attempts: list[Receipt]) -> Receipt:
        """Run one unit. Returns an ok/skipped receipt or raises ActionFailed."""
        if isinstance(unit, ProvisioningStep):
            receipt = self._run_nested(unit)
        else:
            timeout = int(unit.params.get("timeout", self._timeout))
            receipt = self._registry.execute_action(unit, dry_run=self._dry_run, timeout=timeout)

        attempts.append(receipt)
        if receipt.failed:
            raise ActionFailed(unit.label, receipt)
        return receipt

    def _run_nested(self, step: ProvisioningStep) -> Receipt:
        result = self.execute(step)
        action_id = f"step:{step.name}"
        if result.outcome == StepOutcome.SUCCEEDED:
            return Receipt.success(adapter="step", action_id=action_id, output=result.detail)
        if result.outcome == StepOutcome.SKIPPED:
            return Receipt.skip(adapter="step", action_id=action_id, reason=result.detail)
        return Receipt.failure(adapter="step", action_id=action_id, error=result.detail)

"""
Orchestrator — run an ordered list of steps, once each.

Steps run strictly in declaration order because later steps build on
earlier ones (plugins need the framework directory). A required step
that fails stops the run; everything after it is recorded as Skipped.
Cancellation is cooperative and checked between steps.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence

from termsetup.core.engine.executor import StepExecutor
from termsetup.core.models.result import RunReport, StepOutcome, StepResult
from termsetup.core.models.step import ProvisioningStep
from termsetup.core.services.report import MARKERS

logger = logging.getLogger(__name__)

ABORTED_DETAIL = "run aborted by prior failure"
CANCELLED_DETAIL = "run cancelled"


class Orchestrator:
    """Runs steps through a StepExecutor and collects the RunReport.

    Args:
        executor: Executes individual steps.
        cancel_event: Set it (from a signal handler, another thread) to
            stop the run before the next step starts.
    """

    def __init__(
        self,
        executor: StepExecutor,
        cancel_event: threading.Event | None = None,
    ):
        self._executor = executor
        self._cancel = cancel_event or threading.Event()

    def cancel(self) -> None:
        self._cancel.set()

    def run(self, steps: Sequence[ProvisioningStep]) -> RunReport:
        """Execute ``steps`` in order and return the report.

        Raises:
            ValueError: If two steps share a name.
        """
        _check_unique(steps)

        report = RunReport()
        halted_by: str | None = None

        for step in steps:
            if halted_by is not None:
                report.append(StepResult.skipped(step.name, halted_by))
                continue

            if self._cancel.is_set():
                logger.warning("Cancellation requested; not starting %s", step.name)
                report.cancelled = True
                halted_by = CANCELLED_DETAIL
                report.append(StepResult.skipped(step.name, halted_by))
                continue

            logger.info("Running step %s", step.name)
            result = self._executor.execute(step)
            report.append(result)
            logger.info("%s %s → %s", MARKERS[result.outcome], step.name, result.outcome.value)

            if step.required and result.outcome == StepOutcome.FAILED:
                logger.error("Required step %s failed; aborting run", step.name)
                halted_by = ABORTED_DETAIL

        report.finalize()
        return report


def _check_unique(steps: Sequence[ProvisioningStep]) -> None:
    seen: set[str] = set()
    for step in steps:
        if step.name in seen:
            raise ValueError(f"Duplicate step name: {step.name}")
        seen.add(step.name)

"""
StepResult and RunReport — what happened during a run.

One StepResult per step, created once and never changed. The RunReport
is the ordered list of them; it lives only as long as the process.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from termsetup.core.models.action import Receipt


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class StepOutcome(StrEnum):
    """The four possible outcomes of a step."""

    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    DEGRADED = "degraded"


class StepResult(BaseModel):
    """Outcome of one step in one run."""

    model_config = ConfigDict(frozen=True)

    step_name: str
    outcome: StepOutcome
    detail: str = ""
    timestamp: str = Field(default_factory=_now_iso)
    attempts: tuple[Receipt, ...] = ()

    @property
    def is_problem(self) -> bool:
        """Failed or degraded — something the user should look at."""
        return self.outcome in (StepOutcome.FAILED, StepOutcome.DEGRADED)

    @classmethod
    def skipped(cls, step_name: str, detail: str = "", **kwargs) -> StepResult:
        return cls(step_name=step_name, outcome=StepOutcome.SKIPPED, detail=detail, **kwargs)

    @classmethod
    def succeeded(cls, step_name: str, detail: str = "", **kwargs) -> StepResult:
        return cls(step_name=step_name, outcome=StepOutcome.SUCCEEDED, detail=detail, **kwargs)

    @classmethod
    def failed(cls, step_name: str, detail: str = "", **kwargs) -> StepResult:
        return cls(step_name=step_name, outcome=StepOutcome.FAILED, detail=detail, **kwargs)

    @classmethod
    def degraded(cls, step_name: str, detail: str = "", **kwargs) -> StepResult:
        return cls(step_name=step_name, outcome=StepOutcome.DEGRADED, detail=detail, **kwargs)


@dataclass
class RunReport:
    """Ordered results of a run, one per step, in execution order."""

    results: list[StepResult] = field(default_factory=list)
    cancelled: bool = False
    started_at: str = field(default_factory=_now_iso)
    ended_at: str = ""

    def append(self, result: StepResult) -> None:
        self.results.append(result)

    def finalize(self) -> None:
        self.ended_at = _now_iso()

    @property
    def outcomes(self) -> list[StepOutcome]:
        return [r.outcome for r in self.results]

    def count(self, outcome: StepOutcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    @property
    def has_failures(self) -> bool:
        return self.count(StepOutcome.FAILED) > 0

    @property
    def problems(self) -> list[StepResult]:
        """Degraded and failed results, in execution order."""
        return [r for r in self.results if r.is_problem]

    @property
    def exit_code(self) -> int:
        if self.cancelled:
            return 130
        return 1 if self.has_failures else 0

    def get(self, step_name: str) -> StepResult | None:
        for result in self.results:
            if result.step_name == step_name:
                return result
        return None

    def to_dict(self) -> dict:
        return {
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "cancelled": self.cancelled,
            "exit_code": self.exit_code,
            "counts": {o.value: self.count(o) for o in StepOutcome},
            "results": [r.model_dump(mode="json") for r in self.results],
        }

"""
Report rendering — turn a RunReport into text.

Pure functions over the report value. Printing (and colouring) is the
caller's business.
"""

from __future__ import annotations

from termsetup.core.models.result import RunReport, StepOutcome, StepResult

MARKERS: dict[StepOutcome, str] = {
    StepOutcome.SUCCEEDED: "✓",
    StepOutcome.SKIPPED: "⊘",
    StepOutcome.DEGRADED: "⚠",
    StepOutcome.FAILED: "✗",
}


def render_line(result: StepResult) -> str:
    line = f"{MARKERS[result.outcome]} {result.step_name}: {result.outcome.value}"
    if result.detail:
        line += f" — {result.detail}"
    return line


def render_summary(report: RunReport) -> str:
    """One line naming every degraded or failed step."""
    if report.cancelled:
        prefix = "Run cancelled. "
    else:
        prefix = ""

    problems = report.problems
    if not problems:
        return (
            f"{prefix}Summary: all {len(report.results)} step(s) OK "
            f"({report.count(StepOutcome.SUCCEEDED)} succeeded, "
            f"{report.count(StepOutcome.SKIPPED)} skipped)"
        )

    names = ", ".join(f"{r.step_name} ({r.outcome.value})" for r in problems)
    return f"{prefix}Summary: {len(problems)} step(s) need attention: {names}"


def render_lines(report: RunReport) -> list[str]:
    """One line per step, then the summary line."""
    return [render_line(r) for r in report.results] + [render_summary(report)]


def render_report(report: RunReport) -> str:
    return "\n".join(render_lines(report))

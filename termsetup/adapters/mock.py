"""
Mock adapter — scripted stand-in for any adapter.

Provisioning action ids read ``"{step}#{n}"``, so a glob such as
``"pkg:zsh#*"`` addresses every attempt of one step. Each id or glob
carries a sequence of outcomes, consumed one per call with the last
one repeating, which is how flaky installers, fallback chains and
halting are exercised without touching the host. Unscripted actions
succeed.
"""

from __future__ import annotations

import fnmatch
from collections import deque
from collections.abc import Iterable

from termsetup.adapters.base import Adapter, ExecutionContext
from termsetup.core.models.action import Receipt

# A scripted outcome: a ready Receipt, an error message, or None for success
Outcome = Receipt | str | None


class MockAdapter(Adapter):
    """Adapter double driven by per-action outcome sequences.

    Register it under the name your actions use (``adapter_name``), or
    hand it to ``AdapterRegistry.set_mock_mode`` to answer everything.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] executed",
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._scripts: dict[str, deque[Outcome]] = {}
        self._rejections: dict[str, str] = {}
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def called_ids(self) -> list[str]:
        """Action ids in the order they were executed."""
        return [ctx.action.id for ctx in self._call_log]

    def attempts_for(self, step: str) -> list[str]:
        """Executed action ids that belong to ``step``."""
        return [i for i in self.called_ids if i.split("#", 1)[0] == step]

    def is_available(self) -> bool:
        return self._available

    # ── Scripting ───────────────────────────────────────────────

    def set_sequence(self, pattern: str, outcomes: Iterable[Outcome]) -> None:
        """Answer calls matching ``pattern`` with ``outcomes`` in order.

        Raises:
            ValueError: If ``outcomes`` is empty.
        """
        queue = deque(outcomes)
        if not queue:
            raise ValueError(f"Empty outcome sequence for '{pattern}'")
        self._scripts[pattern] = queue

    def set_response(self, pattern: str, receipt: Receipt) -> None:
        self.set_sequence(pattern, [receipt])

    def set_failure(self, pattern: str, error: str = "Mock failure") -> None:
        self.set_sequence(pattern, [error])

    def reject(self, pattern: str, reason: str = "Mock validation failure") -> None:
        """Make ``validate`` refuse matching actions (a missing tool, say)."""
        self._rejections[pattern] = reason

    def reset(self) -> None:
        self._call_log.clear()
        self._scripts.clear()
        self._rejections.clear()

    # ── Adapter protocol ────────────────────────────────────────

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        key = _lookup(self._rejections, context.action.id)
        if key is not None:
            return False, self._rejections[key]
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)
        action_id = context.action.id

        key = _lookup(self._scripts, action_id)
        outcome = None
        if key is not None:
            queue = self._scripts[key]
            outcome = queue.popleft() if len(queue) > 1 else queue[0]

        if isinstance(outcome, Receipt):
            return outcome
        if isinstance(outcome, str):
            return Receipt.failure(adapter=self._name, action_id=action_id, error=outcome)
        return Receipt.success(
            adapter=self._name,
            action_id=action_id,
            output=self._default_output,
            metadata={"mock": True},
        )


def _lookup(table: dict[str, object], action_id: str) -> str | None:
    """Exact id first, then the first glob (in insertion order) that matches."""
    if action_id in table:
        return action_id
    for pattern in table:
        if fnmatch.fnmatchcase(action_id, pattern):
            return pattern
    return None

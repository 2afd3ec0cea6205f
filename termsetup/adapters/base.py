"""
Adapter base — the protocol contract between the executor and tools.

Every external side effect (package install, git clone, download, file
write) goes through an adapter. The executor only ever sees Receipts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from termsetup.core.models.action import Action, Receipt
from termsetup.core.models.settings import DEFAULT_ACTION_TIMEOUT


class ExecutionContext(BaseModel):
    """Everything an adapter needs to execute an action."""

    action: Action
    dry_run: bool = False
    timeout: int = DEFAULT_ACTION_TIMEOUT
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def effective_timeout(self) -> int:
        """Per-action ``timeout`` param wins over the run-wide default."""
        return int(self.params.get("timeout", self.timeout))


class Adapter(ABC):
    """Abstract base class for all adapters.

    Adapters perform external side effects and return receipts.
    They NEVER raise exceptions — failures are captured in the Receipt.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'shell', 'package', 'git')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this adapter's underlying tool is available.

        Should be fast and never raise.
        """

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Validate that the action can be executed.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Execute the action and return a receipt.

        MUST never raise exceptions. All failures are captured
        in the Receipt with status='failed'.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"

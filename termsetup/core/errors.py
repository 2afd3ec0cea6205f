"""
Error taxonomy.

Only two of these ever reach the caller: UnsupportedPlatform and
ConfigError, both raised before any step runs. ActionFailed and
AllActionsExhausted are raised and caught inside step execution and
end up as a Failed or Degraded StepResult.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from termsetup.core.models.action import Receipt


class ProvisioningError(Exception):
    """Base class for termsetup errors."""


class ActionFailed(ProvisioningError):
    """A single action (primary or fallback) did not succeed."""

    def __init__(self, label: str, receipt: Receipt):
        self.label = label
        self.receipt = receipt
        super().__init__(f"{label}: {receipt.error or 'failed'}")


class AllActionsExhausted(ProvisioningError):
    """Every action of a step failed."""

    def __init__(self, step_name: str, attempted: int):
        self.step_name = step_name
        self.attempted = attempted
        if attempted == 0:
            msg = "no install method available on this platform"
        else:
            msg = f"all {attempted} action(s) failed"
        super().__init__(msg)


class UnsupportedPlatform(ProvisioningError):
    """The OS signal matched none of the supported platforms."""

    def __init__(self, ostype: str):
        self.ostype = ostype
        super().__init__(f"Unsupported operating system: {ostype or '(unknown)'}")


class ConfigError(ProvisioningError):
    """Raised when the settings file is missing or invalid."""

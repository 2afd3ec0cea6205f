"""
ProvisioningStep model — a named goal with ordered ways to reach it.

A step declares what "done" looks like (its precondition capability),
the preferred way to get there (primary) and the alternatives to try
when that fails (fallbacks). An alternative may itself be a step, so
"install from source" can carry its own precondition and fallbacks
instead of being special-cased.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from termsetup.core.models.action import Action
from termsetup.core.models.capability import Capability


class ProvisioningStep(BaseModel):
    """A statically defined unit of provisioning.

    Steps are built before a run starts and never mutated during it.
    ``precondition=None`` means the goal can never be observed as
    already reached, so the step always runs.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    precondition: Capability | None = None
    primary: Action | ProvisioningStep | None = None
    fallbacks: tuple[Action | ProvisioningStep, ...] = ()
    required: bool = False

    @property
    def units(self) -> list[Action | ProvisioningStep]:
        """Primary followed by fallbacks, in attempt order."""
        if self.primary is None:
            return list(self.fallbacks)
        return [self.primary, *self.fallbacks]

    @property
    def label(self) -> str:
        return self.name

    @classmethod
    def chain(
        cls,
        name: str,
        units: list[Action | ProvisioningStep],
        *,
        precondition: Capability | None = None,
        required: bool = False,
        description: str = "",
    ) -> ProvisioningStep:
        """Build a step from an ordered list: first is primary, rest fall back."""
        return cls(
            name=name,
            description=description,
            precondition=precondition,
            primary=units[0] if units else None,
            fallbacks=tuple(units[1:]),
            required=required,
        )

"""
Domain models — Pydantic types for provisioning.

All models are re-exported here for convenient access:

    from termsetup.core.models import Capability, ProvisioningStep, StepResult
"""

from termsetup.core.models.action import Action, Receipt
from termsetup.core.models.backup import BackupRecord
from termsetup.core.models.capability import Capability, CapabilityKind
from termsetup.core.models.platform import Platform
from termsetup.core.models.result import RunReport, StepOutcome, StepResult
from termsetup.core.models.settings import Settings
from termsetup.core.models.step import ProvisioningStep

__all__ = [
    # action.py
    "Action",
    # backup.py
    "BackupRecord",
    # capability.py
    "Capability",
    "CapabilityKind",
    # platform.py
    "Platform",
    # step.py
    "ProvisioningStep",
    "Receipt",
    # result.py
    "RunReport",
    # settings.py
    "Settings",
    "StepOutcome",
    "StepResult",
]

"""
Detection use case — what this host looks like to termsetup.

Reports the platform and which adapters have their tools available.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from termsetup.core.detection.platform import detect_platform
from termsetup.core.detection.probe import current_login_shell
from termsetup.core.errors import UnsupportedPlatform
from termsetup.core.models.platform import Platform
from termsetup.core.use_cases.provision import build_registry

logger = logging.getLogger(__name__)


@dataclass
class DetectResult:
    """Result of the detect use case."""

    platform: Platform | None = None
    login_shell: str = ""
    adapters: dict[str, dict[str, Any]] = field(default_factory=dict)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "platform": self.platform.model_dump() if self.platform else None,
            "login_shell": self.login_shell,
            "adapters": self.adapters,
        }


def run_detect(platform: Platform | None = None) -> DetectResult:
    result = DetectResult()
    try:
        result.platform = platform or detect_platform()
    except UnsupportedPlatform as e:
        result.error = str(e)
        return result

    result.login_shell = current_login_shell()
    result.adapters = build_registry().adapter_status()
    return result

"""
Capability model — something on the host that is either there or not.

A capability is what a step produces and, before running, what it
checks for. "zsh is on PATH", "~/.oh-my-zsh is a directory",
"the bubblesextra theme file exists and is not empty".
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class CapabilityKind(StrEnum):
    """What sort of host property a capability describes."""

    EXECUTABLE = "executable"
    DIRECTORY = "directory"
    NON_EMPTY_FILE = "non-empty-file"
    LOGIN_SHELL = "login-shell"


class Capability(BaseModel):
    """An immutable description of a host property.

    Attributes:
        kind: The property type.
        identifier: Program name, path, or shell name depending on kind.
        alternatives: Executable kind only. The capability also holds
            when any of these resolves (e.g. ``eza`` or ``exa`` or ``lsd``).
        sha256: Non-empty-file kind only. When set, the file content
            must also hash to this digest.
    """

    model_config = ConfigDict(frozen=True)

    kind: CapabilityKind
    identifier: str
    alternatives: tuple[str, ...] = ()
    sha256: str | None = None

    @classmethod
    def executable(cls, name: str, *alternatives: str) -> Capability:
        return cls(kind=CapabilityKind.EXECUTABLE, identifier=name, alternatives=alternatives)

    @classmethod
    def directory(cls, path: str) -> Capability:
        return cls(kind=CapabilityKind.DIRECTORY, identifier=path)

    @classmethod
    def non_empty_file(cls, path: str, sha256: str | None = None) -> Capability:
        return cls(kind=CapabilityKind.NON_EMPTY_FILE, identifier=path, sha256=sha256)

    @classmethod
    def login_shell(cls, shell: str) -> Capability:
        return cls(kind=CapabilityKind.LOGIN_SHELL, identifier=shell)

    def describe(self) -> str:
        """Short human-readable form, used in report details."""
        if self.kind == CapabilityKind.EXECUTABLE:
            names = " | ".join((self.identifier, *self.alternatives))
            return f"executable {names}"
        if self.kind == CapabilityKind.NON_EMPTY_FILE and self.sha256:
            return f"file {self.identifier} (up to date)"
        if self.kind == CapabilityKind.NON_EMPTY_FILE:
            return f"file {self.identifier}"
        if self.kind == CapabilityKind.LOGIN_SHELL:
            return f"login shell {self.identifier}"
        return f"directory {self.identifier}"

"""
Shell command adapter — run one command, or a sequence of them.

Installers that are "curl a script and pipe it to a shell" and
multi-command recipes (clone, then run the bundled installer) go
through here.
"""

from __future__ import annotations

import shutil

from termsetup.adapters.base import Adapter, ExecutionContext
from termsetup.adapters.shell.runner import run_subprocess
from termsetup.core.models.action import Receipt


class ShellCommandAdapter(Adapter):
    """Execute shell commands and capture output.

    Action params:
        command (str | list[str]): A single command. Strings run through
            ``/bin/sh``; lists are executed directly.
        commands (list): Several commands run in order; the first failure
            stops the sequence.
        env (dict): Extra environment variables.
        sudo (bool): Prefix list commands with sudo when not root.
        interactive (bool): Attach the terminal instead of capturing.
        cwd (str): Working directory.
        timeout (int): Per-command timeout override in seconds.
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        if not params.get("command") and not params.get("commands"):
            return False, "Missing required param: 'command' or 'commands'"
        if params.get("command") and params.get("commands"):
            return False, "Params 'command' and 'commands' are mutually exclusive"
        commands = params.get("commands")
        if commands is not None and not isinstance(commands, list):
            return False, "Param 'commands' must be a list"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        commands = params.get("commands") or [params["command"]]
        outputs: list[str] = []
        elapsed_ms = 0

        for cmd in commands:
            result = run_subprocess(
                cmd,
                sudo=params.get("sudo", False),
                timeout=context.effective_timeout,
                env_overrides=params.get("env"),
                cwd=params.get("cwd"),
                interactive=params.get("interactive", False),
            )
            elapsed_ms += result.get("elapsed_ms", 0)
            if not result["ok"]:
                return Receipt.failure(
                    adapter=self.name,
                    action_id=context.action.id,
                    error=result["error"],
                    duration_ms=elapsed_ms,
                    metadata={
                        "command": cmd,
                        "return_code": result.get("returncode"),
                        "stderr": result.get("stderr", ""),
                    },
                )
            if result.get("stdout"):
                outputs.append(result["stdout"].strip())

        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output="\n".join(outputs),
            duration_ms=elapsed_ms,
            metadata={"commands": len(commands)},
        )

"""
Shell command adapter — run an arbitrary host command.

Used for the one-off host refreshes that have no dedicated adapter,
e.g. ``update-desktop-database``.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from aipt.adapters.base import Adapter, ExecutionContext
from aipt.adapters.shell.process import run_command
from aipt.core.models.action import Receipt


class ShellCommandAdapter(Adapter):
    """Execute shell commands and capture output.

    Action params:
        command (str | list[str]): The command to execute.
        shell (bool): Whether to run through the shell (default: True for str).
        timeout (int): Optional timeout in seconds (default: none).
        cwd (str): Working directory (default: inherited).
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        command = context.params.get("command")
        if not command:
            return False, "Missing required param: 'command'"

        cwd = context.working_dir
        if cwd and not Path(cwd).is_dir():
            return False, f"Working directory does not exist: {cwd}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        command = context.params["command"]
        use_shell = context.params.get("shell", isinstance(command, str))

        return run_command(
            self.name,
            context.action.id,
            command,
            shell=use_shell,
            timeout=context.params.get("timeout"),
            cwd=context.working_dir,
        )

"""
Python adapter — isolated environment and package operations.

The isolated environment is never "activated": every operation names
the interpreter it runs (``python`` param), so the venv's own
``bin/python`` is used for installs and no shell state leaks between
actions.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess

from aipt.adapters.base import Adapter, ExecutionContext
from aipt.adapters.shell.process import run_command
from aipt.core.models.action import Receipt

logger = logging.getLogger(__name__)


class PythonAdapter(Adapter):
    """Python toolchain adapter.

    Action params:
        operation (str): One of 'venv', 'pip_install', 'run_code'.
        path (str): Environment directory (for 'venv').
        python (str): Interpreter to run (default: python3).
        packages (list[str]): Requirement specifiers (for 'pip_install').
        editable (str): Local checkout to install in editable mode
            (for 'pip_install', instead of 'packages').
        upgrade (bool): Pass --upgrade (for 'pip_install').
        no_cache_dir (bool): Pass --no-cache-dir (for 'pip_install').
        code (str): Source to run with ``python -c`` (for 'run_code').
        timeout (int): Optional timeout in seconds (default: none).
    """

    OPERATIONS = {"venv", "pip_install", "run_code"}

    @property
    def name(self) -> str:
        return "python"

    def is_available(self) -> bool:
        return shutil.which("python3") is not None

    def version(self, python: str = "python3") -> str | None:
        """Detect the interpreter version string."""
        try:
            result = subprocess.run(
                [python, "--version"],
                capture_output=True,
                text=True,
                timeout=5,
            )
            if result.returncode == 0:
                # "Python 3.12.8" → "3.12.8"
                match = re.search(r"(\d+\.\d+\.\d+)", result.stdout + result.stderr)
                return match.group(1) if match else None
        except (subprocess.TimeoutExpired, OSError):
            pass
        return None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if not operation:
            return False, "Missing required param: 'operation'"

        if operation not in self.OPERATIONS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(self.OPERATIONS))}"

        if operation == "venv" and not context.params.get("path"):
            return False, "Missing required param: 'path' for venv operation"

        if operation == "pip_install" and not (
            context.params.get("packages") or context.params.get("editable")
        ):
            return False, "Missing required param: 'packages' or 'editable' for pip_install"

        if operation == "run_code" and not context.params.get("code"):
            return False, "Missing required param: 'code' for run_code operation"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.params["operation"]
        cmd = self.build_command(context.params)
        timeout = context.params.get("timeout")

        return run_command(
            self.name,
            context.action.id,
            cmd,
            timeout=timeout,
            cwd=context.working_dir,
            metadata={"operation": operation},
        )

    @staticmethod
    def build_command(params: dict) -> list[str]:
        """Build the interpreter argument list for an operation."""
        operation = params["operation"]
        python = params.get("python", "python3")

        if operation == "venv":
            return [python, "-m", "venv", params["path"]]

        if operation == "run_code":
            return [python, "-c", params["code"]]

        cmd = [python, "-m", "pip", "install"]
        if params.get("upgrade"):
            cmd.append("--upgrade")
        if params.get("no_cache_dir"):
            cmd.append("--no-cache-dir")
        if params.get("editable"):
            cmd.extend(["-e", params["editable"]])
        else:
            cmd.extend(params["packages"])
        return cmd

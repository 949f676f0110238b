"""
APT adapter — Debian/Ubuntu system package operations.

Each operation is a single apt-get invocation over the whole package
list. apt's own dpkg lock serialises concurrent callers; this adapter
adds no locking of its own.
"""

from __future__ import annotations

import shutil

from aipt.adapters.base import Adapter, ExecutionContext
from aipt.adapters.shell.process import run_command
from aipt.core.models.action import Receipt

# Never block on debconf prompts during unattended provisioning
APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


class AptAdapter(Adapter):
    """System package manager adapter (apt-get).

    Action params:
        operation (str): One of 'update', 'install', 'purge',
                         'autoremove', 'clean'.
        packages (list[str]): Package names (for 'install' and 'purge').
        no_install_recommends (bool): Pass --no-install-recommends
            (for 'install', default: False).
        timeout (int): Optional timeout in seconds (default: none).
    """

    OPERATIONS = {"update", "install", "purge", "autoremove", "clean"}

    @property
    def name(self) -> str:
        return "apt"

    def is_available(self) -> bool:
        return shutil.which("apt-get") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if not operation:
            return False, "Missing required param: 'operation'"

        if operation not in self.OPERATIONS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(self.OPERATIONS))}"

        if operation in ("install", "purge") and not context.params.get("packages"):
            return False, f"Missing required param: 'packages' for {operation} operation"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        cmd = self.build_command(context.params)
        packages = context.params.get("packages", [])

        return run_command(
            self.name,
            context.action.id,
            cmd,
            timeout=context.params.get("timeout"),
            env_overrides=APT_ENV,
            metadata={
                "operation": context.params["operation"],
                "package_count": len(packages),
            },
        )

    @staticmethod
    def build_command(params: dict) -> list[str]:
        """Build the apt-get argument list for an operation."""
        operation = params["operation"]
        packages = list(params.get("packages", []))

        if operation == "update":
            return ["apt-get", "update", "-y"]
        if operation == "install":
            cmd = ["apt-get", "install", "-y"]
            if params.get("no_install_recommends"):
                cmd.append("--no-install-recommends")
            return cmd + packages
        if operation == "purge":
            return ["apt-get", "purge", "-y", *packages]
        if operation == "autoremove":
            return ["apt-get", "autoremove", "-y", "--purge"]
        return ["apt-get", "clean"]

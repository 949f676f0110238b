"""
Node.js adapter — runtime provisioning and global npm tools.

The runtime is treated as compatible when ``node -v`` matches the
profile's major-version pattern; only then is the vendor setup stream
skipped. The stream runs under bash with pipefail, so a download error
fails the action instead of reaching ``apt-get install nodejs``.
"""

from __future__ import annotations

import logging
import re
import shlex
import shutil
import subprocess

from aipt.adapters.base import Adapter, ExecutionContext
from aipt.adapters.packages.apt import APT_ENV
from aipt.adapters.shell.process import run_command
from aipt.core.models.action import Receipt

logger = logging.getLogger(__name__)


class NodeAdapter(Adapter):
    """Node.js toolchain adapter.

    Action params:
        operation (str): One of 'ensure_runtime', 'install_global'.
        setup_url (str): Vendor setup script URL (for 'ensure_runtime').
        version_pattern (str): Regex the ``node -v`` output must match
            (for 'ensure_runtime').
        packages (list[str]): npm package names (for 'install_global').
        timeout (int): Optional timeout in seconds (default: none).
    """

    OPERATIONS = {"ensure_runtime", "install_global"}

    @property
    def name(self) -> str:
        return "node"

    def is_available(self) -> bool:
        return shutil.which("node") is not None

    def version(self) -> str | None:
        """Raw ``node -v`` output (e.g. ``v20.11.0``), or None if absent."""
        if shutil.which("node") is None:
            return None
        try:
            result = subprocess.run(
                ["node", "-v"],
                capture_output=True,
                text=True,
                timeout=5,
            )
            if result.returncode == 0:
                return result.stdout.strip()
        except (subprocess.TimeoutExpired, OSError):
            pass
        return None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if not operation:
            return False, "Missing required param: 'operation'"

        if operation not in self.OPERATIONS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(self.OPERATIONS))}"

        if operation == "ensure_runtime":
            if not context.params.get("setup_url"):
                return False, "Missing required param: 'setup_url' for ensure_runtime"
            pattern = context.params.get("version_pattern", "")
            if not pattern:
                return False, "Missing required param: 'version_pattern' for ensure_runtime"
            try:
                re.compile(pattern)
            except re.error as e:
                return False, f"Invalid version_pattern: {e}"

        if operation == "install_global" and not context.params.get("packages"):
            return False, "Missing required param: 'packages' for install_global"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.params["operation"]
        if operation == "ensure_runtime":
            return self._ensure_runtime(context)
        return self._install_global(context)

    # ── Operations ──────────────────────────────────────────────

    def _ensure_runtime(self, ctx: ExecutionContext) -> Receipt:
        pattern = ctx.params["version_pattern"]
        current = self.version()

        if current and re.search(pattern, current):
            return Receipt.skip(
                adapter=self.name,
                action_id=ctx.action.id,
                reason=f"Compatible Node.js already installed ({current})",
                metadata={"node_version": current},
            )

        logger.info(
            "Node.js %s does not satisfy %s — running vendor setup",
            current or "(missing)",
            pattern,
        )
        timeout = ctx.params.get("timeout")
        # pipefail so a failed download is not an empty script that exits 0
        url = shlex.quote(ctx.params["setup_url"])
        setup = run_command(
            self.name,
            ctx.action.id,
            ["bash", "-c", f"set -o pipefail; curl -fsSL {url} | bash -"],
            timeout=timeout,
        )
        if setup.failed:
            return setup

        receipt = run_command(
            self.name,
            ctx.action.id,
            ["apt-get", "install", "-y", "nodejs"],
            timeout=timeout,
            env_overrides=APT_ENV,
        )
        receipt.metadata["previous_version"] = current
        return receipt

    def _install_global(self, ctx: ExecutionContext) -> Receipt:
        packages = ctx.params["packages"]
        return run_command(
            self.name,
            ctx.action.id,
            ["npm", "install", "-g", *packages],
            timeout=ctx.params.get("timeout"),
            metadata={"packages": packages},
        )

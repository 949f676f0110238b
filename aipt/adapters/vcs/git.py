"""
Git adapter — source checkouts for tools installed from source.

Clones are clone-if-absent: an existing checkout is left untouched.
Either way the checked-out commit is recorded in the receipt metadata,
so the audit ledger shows exactly which revision was installed.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

from aipt.adapters.base import Adapter, ExecutionContext
from aipt.adapters.shell.process import run_command
from aipt.core.models.action import Receipt

logger = logging.getLogger(__name__)


class GitAdapter(Adapter):
    """Git checkout operations.

    Action params:
        operation (str): 'clone'.
        url (str): Repository URL.
        dest (str): Checkout directory.
        timeout (int): Optional timeout in seconds (default: none).
    """

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if operation != "clone":
            return False, f"Unknown operation '{operation}'. Valid: clone"

        for key in ("url", "dest"):
            if not context.params.get(key):
                return False, f"Missing required param: '{key}' for clone operation"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        url = context.params["url"]
        dest = Path(context.params["dest"])

        if dest.exists():
            revision = self.revision(dest)
            return Receipt.skip(
                adapter=self.name,
                action_id=context.action.id,
                reason=f"Checkout already present: {dest}",
                metadata={"url": url, "dest": str(dest), "revision": revision},
            )

        receipt = run_command(
            self.name,
            context.action.id,
            ["git", "clone", url, str(dest)],
            timeout=context.params.get("timeout"),
            metadata={"url": url, "dest": str(dest)},
        )
        if receipt.ok:
            receipt.metadata["revision"] = self.revision(dest)
        return receipt

    # ── Helpers ─────────────────────────────────────────────────

    def revision(self, checkout: Path) -> str | None:
        """Commit hash of HEAD in a checkout, or None if unreadable."""
        try:
            result = subprocess.run(
                ["git", "-C", str(checkout), "rev-parse", "HEAD"],
                capture_output=True,
                text=True,
                timeout=30,
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            logger.debug("Cannot read revision of %s: %s", checkout, e)
            return None
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

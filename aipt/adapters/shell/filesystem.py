"""
Filesystem adapter — desired-state file, directory and link operations.

Every operation compares the host against the requested state first and
returns a ``skipped`` receipt when nothing needs to change, so reruns
leave wrapper and launcher files byte-identical.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
from pathlib import Path

from aipt.adapters.base import Adapter, ExecutionContext
from aipt.core.models.action import Receipt

logger = logging.getLogger(__name__)


def _mode_of(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


class FilesystemAdapter(Adapter):
    """File, directory and symlink operations with receipts.

    Action params:
        operation (str): One of 'mkdir', 'write', 'symlink'.
        path (str): Target path (absolute).
        mode (int): Permission bits for 'mkdir' and 'write' (optional).
        content (str): Content to write (for 'write').
        source (str): Link target (for 'symlink').
        source_command (str): Command resolved on PATH as link target
            (for 'symlink', when 'source' is not given).
    """

    @property
    def name(self) -> str:
        return "filesystem"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if not operation:
            return False, "Missing required param: 'operation'"

        valid_ops = {"mkdir", "write", "symlink"}
        if operation not in valid_ops:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(valid_ops))}"

        path = context.params.get("path", "")
        if not path:
            return False, "Missing required param: 'path'"
        if not Path(path).is_absolute():
            return False, f"Path must be absolute: {path}"

        if operation == "write" and "content" not in context.params:
            return False, "Missing required param: 'content' for write operation"

        if operation == "symlink" and not (
            context.params.get("source") or context.params.get("source_command")
        ):
            return False, "Missing required param: 'source' or 'source_command' for symlink"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.params["operation"]
        target = Path(context.params["path"])

        try:
            if operation == "mkdir":
                return self._mkdir(context, target)
            elif operation == "write":
                return self._write(context, target)
            elif operation == "symlink":
                return self._symlink(context, target)
            else:
                return Receipt.failure(
                    adapter=self.name,
                    action_id=context.action.id,
                    error=f"Unknown operation: {operation}",
                )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Filesystem error: {e}",
                metadata={"operation": operation, "path": str(target)},
            )

    # ── Operations ──────────────────────────────────────────────

    def _mkdir(self, ctx: ExecutionContext, target: Path) -> Receipt:
        mode = ctx.params.get("mode")
        if target.is_dir() and (mode is None or _mode_of(target) == mode):
            return Receipt.skip(
                adapter=self.name,
                action_id=ctx.action.id,
                reason=f"Directory exists: {target}",
                metadata={"path": str(target)},
            )

        target.mkdir(parents=True, exist_ok=True)
        if mode is not None:
            target.chmod(mode)
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Directory created: {target}",
            metadata={"path": str(target)},
        )

    def _write(self, ctx: ExecutionContext, target: Path) -> Receipt:
        content: str = ctx.params["content"]
        mode = ctx.params.get("mode")
        data = content.encode("utf-8")

        if target.is_file() and not target.is_symlink():
            same_content = target.read_bytes() == data
            same_mode = mode is None or _mode_of(target) == mode
            if same_content and same_mode:
                return Receipt.skip(
                    adapter=self.name,
                    action_id=ctx.action.id,
                    reason=f"Up to date: {target}",
                    metadata={"path": str(target), "size": len(data)},
                )
            if same_content:
                target.chmod(mode)
                return Receipt.success(
                    adapter=self.name,
                    action_id=ctx.action.id,
                    output=f"Mode set to {oct(mode)} on {target}",
                    metadata={"path": str(target), "mode": oct(mode)},
                )

        target.parent.mkdir(parents=True, exist_ok=True)
        if target.is_symlink():
            target.unlink()
        target.write_bytes(data)
        if mode is not None:
            target.chmod(mode)

        logger.debug("Wrote %d bytes to %s", len(data), target)
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Written {len(data)} bytes to {target}",
            metadata={"path": str(target), "size": len(data)},
        )

    def _symlink(self, ctx: ExecutionContext, target: Path) -> Receipt:
        source = ctx.params.get("source")
        if not source:
            command = ctx.params["source_command"]
            source = shutil.which(command)
            if source is None:
                return Receipt.failure(
                    adapter=self.name,
                    action_id=ctx.action.id,
                    error=f"Command not found on PATH: {command}",
                )

        # The command may already resolve to the link location itself
        if Path(source).absolute() == target.absolute():
            return Receipt.skip(
                adapter=self.name,
                action_id=ctx.action.id,
                reason=f"{target} is already the resolved command",
                metadata={"path": str(target), "source": source},
            )

        if target.is_symlink() and os.readlink(target) == source:
            return Receipt.skip(
                adapter=self.name,
                action_id=ctx.action.id,
                reason=f"Link up to date: {target} -> {source}",
                metadata={"path": str(target), "source": source},
            )

        target.parent.mkdir(parents=True, exist_ok=True)
        if target.is_symlink() or target.exists():
            target.unlink()
        target.symlink_to(source)

        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Linked {target} -> {source}",
            metadata={"path": str(target), "source": source},
        )

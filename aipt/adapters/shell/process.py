"""
Subprocess runner — the single place adapters call ``subprocess.run``.

Every package-manager, interpreter and git invocation goes through
``run_command`` so that timing, output capture, environment overrides
and failure shaping are identical across adapters. The full output of
each tool goes to the ``aipt.tool_output`` logger at DEBUG, so a file
log (AIPT_LOG_FILE) or --debug shows it line by line.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from typing import Any

from aipt.core.models.action import Receipt

logger = logging.getLogger(__name__)

# Every line a tool prints, at DEBUG; receipts keep only a tail
output_logger = logging.getLogger("aipt.tool_output")

# Keep receipts (and the audit ledger) bounded on chatty installers
_OUTPUT_TAIL = 4000


def _tail(text: str | None) -> str:
    if not text:
        return ""
    text = text.strip()
    return text[-_OUTPUT_TAIL:]


def _log_output(action_id: str, stream: str, text: str | None) -> None:
    if not text or not output_logger.isEnabledFor(logging.DEBUG):
        return
    for line in text.splitlines():
        output_logger.debug("%s [%s] %s", action_id, stream, line)


def run_command(
    adapter: str,
    action_id: str,
    cmd: list[str] | str,
    *,
    shell: bool = False,
    timeout: float | None = None,
    env_overrides: dict[str, str] | None = None,
    cwd: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> Receipt:
    """Run one command and shape the outcome into a Receipt.

    Args:
        adapter: Name of the calling adapter (recorded on the receipt).
        action_id: Action being executed.
        cmd: Argument list, or a string when ``shell`` is True.
        shell: Run through ``/bin/sh`` (needed for pipelines).
        timeout: Seconds before the command is killed; None waits for the
            tool to finish on its own.
        env_overrides: Extra environment variables.
        cwd: Working directory.
        metadata: Extra metadata merged into the receipt.

    Returns:
        ``ok`` receipt on exit 0, ``failed`` otherwise. Never raises.
    """
    display = cmd if isinstance(cmd, str) else " ".join(cmd)
    meta: dict[str, Any] = {"command": display, **(metadata or {})}

    env = None
    if env_overrides:
        env = os.environ.copy()
        env.update(env_overrides)

    logger.debug("Executing: %s (cwd=%s)", display, cwd)
    start = time.monotonic()

    try:
        result = subprocess.run(
            cmd,
            shell=shell,
            cwd=cwd,
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return Receipt.failure(
            adapter=adapter,
            action_id=action_id,
            error=f"Command timed out after {timeout}s",
            metadata={**meta, "timeout": timeout},
        )
    except OSError as e:
        # Missing executable, bad cwd, permission denied
        return Receipt.failure(
            adapter=adapter,
            action_id=action_id,
            error=f"Command execution error: {e}",
            metadata=meta,
        )

    elapsed_ms = int((time.monotonic() - start) * 1000)
    _log_output(action_id, "out", result.stdout)
    _log_output(action_id, "err", result.stderr)
    stdout = _tail(result.stdout)
    stderr = _tail(result.stderr)
    meta["return_code"] = result.returncode

    if result.returncode == 0:
        return Receipt.success(
            adapter=adapter,
            action_id=action_id,
            output=stdout,
            duration_ms=elapsed_ms,
            metadata={**meta, "stderr": stderr},
        )

    return Receipt.failure(
        adapter=adapter,
        action_id=action_id,
        error=stderr or f"Command exited with code {result.returncode}",
        duration_ms=elapsed_ms,
        metadata={**meta, "stdout": stdout},
    )

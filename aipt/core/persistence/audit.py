"""
Audit ledger — the host's provisioning history.

One NDJSON line per real run, appended to ``<state_dir>/audit.ndjson``
and never rewritten: when it ran, on which host, how it ended, which
actions failed, and which source revisions it installed.
"""

from __future__ import annotations

import json
import logging
import socket
from collections import deque
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_FILE = "audit.ndjson"


class AuditEntry(BaseModel):
    """One provisioning run, as recorded in the ledger."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    hostname: str = Field(default_factory=socket.gethostname)
    operation_id: str = ""
    operation_type: str = ""       # provision

    status: str = ""               # ok, degraded, aborted
    actions_total: int = 0
    actions_succeeded: int = 0
    actions_skipped: int = 0
    actions_failed: int = 0
    actions_not_run: int = 0

    errors: list[str] = Field(default_factory=list)

    # aborted_by, checkouts (dest → revision)
    context: dict[str, Any] = Field(default_factory=dict)


def default_audit_path(state_dir: Path) -> Path:
    return state_dir / DEFAULT_AUDIT_FILE


class AuditWriter:
    """Appends entries to, and reads them back from, one ledger file."""

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> None:
        """Append one entry.

        Failures are logged rather than raised: by the time the ledger
        is written the host has already been changed, and the run's
        outcome must still reach the caller.
        """
        line = entry.model_dump_json() + "\n"
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            logger.error("Could not append to audit ledger %s: %s", self._path, e)
            return
        logger.debug("Audit entry %s appended to %s", entry.operation_id, self._path)

    def iter_entries(self) -> Iterator[AuditEntry]:
        """Yield entries oldest first, skipping lines that do not parse."""
        if not self._path.is_file():
            return
        try:
            with self._path.open(encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    if not line.strip():
                        continue
                    try:
                        yield AuditEntry.model_validate(json.loads(line))
                    except (json.JSONDecodeError, ValidationError) as e:
                        logger.warning("%s:%d: unreadable audit entry (%s)", self._path, line_num, e)
        except OSError as e:
            logger.error("Could not read audit ledger %s: %s", self._path, e)

    def read_all(self) -> list[AuditEntry]:
        return list(self.iter_entries())

    def read_recent(self, n: int = 20) -> list[AuditEntry]:
        """The last ``n`` entries, oldest first."""
        return list(deque(self.iter_entries(), maxlen=n))

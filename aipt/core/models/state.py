"""
HostState — what the provisioner last did to this host.

Serialized to ``<state_dir>/state.json`` after every real run. It is
disposable: delete it and the next run rebuilds it from scratch.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class OperationRecord(BaseModel):
    """Summary of the last provisioning run."""

    operation_id: str = ""
    started_at: str = ""
    ended_at: str = ""
    status: str = ""  # ok, degraded, aborted
    actions_total: int = 0
    actions_succeeded: int = 0
    actions_skipped: int = 0
    actions_failed: int = 0
    actions_not_run: int = 0
    failed_actions: list[str] = Field(default_factory=list)


class CheckoutState(BaseModel):
    """A source checkout and the revision it was installed from."""

    name: str
    path: str
    revision: str | None = None
    recorded_at: str = Field(default_factory=_now_iso)


class HostState(BaseModel):
    """Root state model — serialized to state.json."""

    schema_version: int = 1

    hostname: str = ""

    created_at: str = Field(default_factory=_now_iso)
    updated_at: str = Field(default_factory=_now_iso)

    last_operation: OperationRecord = Field(default_factory=OperationRecord)
    checkouts: dict[str, CheckoutState] = Field(default_factory=dict)

    metadata: dict[str, Any] = Field(default_factory=dict)

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = _now_iso()

    def set_checkout(self, name: str, **kwargs: Any) -> None:
        """Update or create a checkout entry."""
        if name in self.checkouts:
            for key, value in kwargs.items():
                setattr(self.checkouts[name], key, value)
            self.checkouts[name].recorded_at = _now_iso()
        else:
            self.checkouts[name] = CheckoutState(name=name, **kwargs)

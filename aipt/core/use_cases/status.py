"""
Status use case — what the provisioner last did and what tools exist.

Read-only: loads the profile, the state file and the tail of the audit
ledger, and probes adapter availability. Safe to run as any user.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from aipt.adapters import default_registry
from aipt.core.config.loader import ConfigError, load_profile
from aipt.core.models.profile import ProvisionProfile
from aipt.core.models.state import HostState
from aipt.core.persistence.audit import AuditEntry, AuditWriter, default_audit_path
from aipt.core.persistence.state_file import default_state_path, load_state

logger = logging.getLogger(__name__)


@dataclass
class StatusResult:
    """Snapshot of the provisioner's view of this host."""

    profile: ProvisionProfile | None = None
    state: HostState | None = None
    adapters: dict[str, dict[str, Any]] = field(default_factory=dict)
    recent_runs: list[AuditEntry] = field(default_factory=list)
    error: str | None = None

    @property
    def provisioned(self) -> bool:
        return bool(self.state and self.state.last_operation.operation_id)

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "provisioned": self.provisioned,
            "state_dir": self.profile.state_dir if self.profile else None,
            "last_operation": (
                self.state.last_operation.model_dump(mode="json") if self.state else None
            ),
            "checkouts": {
                name: c.model_dump(mode="json")
                for name, c in (self.state.checkouts.items() if self.state else [])
            },
            "adapters": self.adapters,
            "recent_runs": [e.model_dump(mode="json") for e in self.recent_runs],
        }


def get_status(config_path: Path | None = None, recent: int = 5) -> StatusResult:
    """Collect the provisioning status of this host."""
    result = StatusResult()

    try:
        result.profile = load_profile(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    state_dir = Path(result.profile.state_dir)
    result.state = load_state(default_state_path(state_dir))
    result.recent_runs = AuditWriter(default_audit_path(state_dir)).read_recent(recent)
    result.adapters = default_registry().adapter_status()

    return result

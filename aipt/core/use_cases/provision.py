"""
Provision use case — bring the host to the declared state.

This is the top-level orchestrator: privilege gate, profile load, plan,
execute, persist. The full vertical slice from ``aipt-setup`` to an
audited host.
"""

from __future__ import annotations

import logging
import socket
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from aipt.adapters import default_registry
from aipt.adapters.registry import AdapterRegistry
from aipt.core.config.loader import ConfigError, load_profile
from aipt.core.engine.executor import (
    ExecutionPlan,
    ExecutionReport,
    execute_plan,
    generate_operation_id,
    write_audit_entries,
)
from aipt.core.models.action import Action, Receipt
from aipt.core.models.profile import ProvisionProfile
from aipt.core.persistence.audit import AuditWriter, default_audit_path
from aipt.core.persistence.state_file import default_state_path, load_state, save_state
from aipt.core.services.privilege import PrivilegeError, require_root
from aipt.core.services.provision_plan import build_plan

logger = logging.getLogger(__name__)


@dataclass
class ProvisionResult:
    """Result of a provisioning run."""

    report: ExecutionReport | None = None
    plan: ExecutionPlan | None = None
    profile: ProvisionProfile | None = None
    error: str | None = None
    error_kind: str | None = None   # privilege, config

    @property
    def exit_code(self) -> int:
        if self.error:
            return 1
        if self.report and self.report.aborted:
            return 1
        return 0

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error, "error_kind": self.error_kind}
        result: dict = {
            "actions_planned": self.plan.total_actions if self.plan else 0,
        }
        if self.profile:
            result["venv_dir"] = self.profile.venv_path
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def prepare_plan(
    config_path: Path | None = None,
    profile: ProvisionProfile | None = None,
) -> tuple[ProvisionProfile, ExecutionPlan]:
    """Load the profile (unless given) and build its plan.

    Raises:
        ConfigError: If the profile override is invalid.
    """
    if profile is None:
        profile = load_profile(config_path)
    plan = build_plan(profile, generate_operation_id())
    return profile, plan


def run_provision(
    config_path: Path | None = None,
    profile: ProvisionProfile | None = None,
    dry_run: bool = False,
    mock_mode: bool = False,
    registry: AdapterRegistry | None = None,
    on_step: Callable[[str, str], None] | None = None,
    on_receipt: Callable[[Action, Receipt], None] | None = None,
) -> ProvisionResult:
    """Provision the host.

    Args:
        config_path: Optional explicit profile override file.
        profile: Pre-built profile (skips loading).
        dry_run: If True, validate every action but change nothing.
        mock_mode: If True, use mock adapter responses.
        registry: Optional pre-configured adapter registry.
        on_step: Progress callback, called when a step begins.
        on_receipt: Progress callback, called after each action.

    Returns:
        ProvisionResult with the execution report. Nothing is persisted
        for dry-runs, mock runs, or when the privilege gate fails.
    """
    result = ProvisionResult()

    # Dry-run and mock runs never touch the host
    if not (dry_run or mock_mode):
        try:
            require_root()
        except PrivilegeError as e:
            result.error = str(e)
            result.error_kind = "privilege"
            return result

    try:
        result.profile, result.plan = prepare_plan(config_path, profile)
    except ConfigError as e:
        result.error = str(e)
        result.error_kind = "config"
        return result

    if registry is None:
        registry = default_registry(mock_mode=mock_mode)

    report = execute_plan(
        plan=result.plan,
        registry=registry,
        dry_run=dry_run,
        on_step=on_step,
        on_receipt=on_receipt,
    )
    result.report = report

    if not (dry_run or mock_mode):
        record_run(report, result.profile)

    return result


def record_run(report: ExecutionReport, profile: ProvisionProfile) -> None:
    """Persist the run to the state file and the audit ledger."""
    state_dir = Path(profile.state_dir)

    state_path = default_state_path(state_dir)
    state = load_state(state_path)
    state.hostname = socket.gethostname()

    op = state.last_operation
    op.operation_id = report.operation_id
    op.started_at = report.started_at
    op.ended_at = report.ended_at
    op.status = report.status
    op.actions_total = report.total
    op.actions_succeeded = report.succeeded
    op.actions_skipped = report.skipped
    op.actions_failed = report.failed
    op.actions_not_run = len(report.not_run)
    op.failed_actions = [r.action_id for r in report.receipts if r.failed]

    for receipt in report.receipts:
        if receipt.adapter != "git" or "dest" not in receipt.metadata:
            continue
        if receipt.failed:
            continue
        dest = receipt.metadata["dest"]
        state.set_checkout(
            Path(dest).name,
            path=dest,
            revision=receipt.metadata.get("revision"),
        )

    try:
        save_state(state, state_path)
    except OSError as e:
        logger.error("Could not save state to %s: %s", state_path, e)

    write_audit_entries(report, AuditWriter(default_audit_path(state_dir)))

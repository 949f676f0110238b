"""
Engine executor — the central provisioning loop.

Takes a plan, runs its actions strictly in order through the adapter
registry, collects receipts, and applies the failure policy:

    required     a failure aborts the run; later actions are not run
    best_effort  a failure is recorded and the run continues

Flow:
    plan → execute (in order) → receipts → report → audit
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from aipt.adapters.registry import AdapterRegistry
from aipt.core.models.action import Action, Receipt
from aipt.core.persistence.audit import AuditEntry, AuditWriter

logger = logging.getLogger(__name__)


@dataclass
class ExecutionPlan:
    """An ordered set of actions, grouped into titled steps."""

    operation_id: str = ""
    actions: list[Action] = field(default_factory=list)
    steps: dict[str, str] = field(default_factory=dict)  # step → title, in order

    @property
    def total_actions(self) -> int:
        return len(self.actions)

    def add_step(self, step: str, title: str, actions: list[Action]) -> None:
        """Append a step and its actions, tagging each action with the step."""
        self.steps[step] = title
        for action in actions:
            action.step = step
            self.actions.append(action)

    def step_actions(self, step: str) -> list[Action]:
        return [a for a in self.actions if a.step == step]


@dataclass
class ExecutionReport:
    """Result of executing a plan."""

    operation_id: str = ""
    started_at: str = ""
    ended_at: str = ""
    dry_run: bool = False
    receipts: list[Receipt] = field(default_factory=list)
    policies: dict[str, str] = field(default_factory=dict)   # action id → policy
    not_run: list[str] = field(default_factory=list)
    aborted_by: str | None = None

    @property
    def total(self) -> int:
        return len(self.receipts) + len(self.not_run)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.receipts if r.ok)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.receipts if r.skipped)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.receipts if r.failed)

    @property
    def tolerated_failures(self) -> list[Receipt]:
        """Best-effort actions that failed without stopping the run."""
        return [
            r for r in self.receipts
            if r.failed and self.policies.get(r.action_id) == "best_effort"
        ]

    @property
    def aborted(self) -> bool:
        return self.aborted_by is not None

    @property
    def status(self) -> str:
        if self.aborted:
            return "aborted"
        if self.failed:
            return "degraded"
        return "ok"

    def receipt_for(self, action_id: str) -> Receipt | None:
        for receipt in self.receipts:
            if receipt.action_id == action_id:
                return receipt
        return None

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "status": self.status,
            "dry_run": self.dry_run,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "total": self.total,
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "failed": self.failed,
            "not_run": list(self.not_run),
            "aborted_by": self.aborted_by,
            "tolerated_failures": [r.action_id for r in self.tolerated_failures],
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def execute_plan(
    plan: ExecutionPlan,
    registry: AdapterRegistry,
    dry_run: bool = False,
    on_step: Callable[[str, str], None] | None = None,
    on_receipt: Callable[[Action, Receipt], None] | None = None,
) -> ExecutionReport:
    """Execute all actions in a plan, in order, through the adapter registry.

    Args:
        plan: The execution plan.
        registry: Adapter registry for dispatch.
        dry_run: If True, validate but don't execute.
        on_step: Called with (step, title) when a new step begins.
        on_receipt: Called with each action and its receipt.

    Returns:
        ExecutionReport with all receipts. A failed required action
        stops the loop; every later action is listed in ``not_run``.
    """
    report = ExecutionReport(
        operation_id=plan.operation_id,
        started_at=_now_iso(),
        dry_run=dry_run,
        policies={a.id: a.policy for a in plan.actions},
    )

    current_step: str | None = None
    for index, action in enumerate(plan.actions):
        if action.step != current_step:
            current_step = action.step
            if on_step:
                on_step(action.step, plan.steps.get(action.step, action.step))

        receipt = registry.execute_action(action, dry_run=dry_run)
        report.receipts.append(receipt)

        status_marker = "✓" if receipt.ok else "✗" if receipt.failed else "⊘"
        logger.info("%s %s → %s", status_marker, action.id, receipt.status)

        if on_receipt:
            on_receipt(action, receipt)

        if receipt.failed:
            if action.required:
                logger.error("Required action %s failed: %s", action.id, receipt.error)
                report.aborted_by = action.id
                report.not_run = [a.id for a in plan.actions[index + 1:]]
                break
            logger.warning("Best-effort action %s failed (continuing): %s", action.id, receipt.error)

    report.ended_at = _now_iso()
    return report


def write_audit_entries(report: ExecutionReport, audit_writer: AuditWriter) -> None:
    """Write one run's results to the audit ledger."""
    revisions = {
        r.metadata["dest"]: r.metadata.get("revision")
        for r in report.receipts
        if r.adapter == "git" and "dest" in r.metadata
    }
    entry = AuditEntry(
        operation_id=report.operation_id,
        operation_type="provision",
        status=report.status,
        actions_total=report.total,
        actions_succeeded=report.succeeded,
        actions_skipped=report.skipped,
        actions_failed=report.failed,
        actions_not_run=len(report.not_run),
        errors=[f"{r.action_id}: {r.error}" for r in report.receipts if r.failed],
        context={"aborted_by": report.aborted_by, "checkouts": revisions},
    )
    audit_writer.write(entry)


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"

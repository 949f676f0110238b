"""
Action and Receipt — what the engine asks for, and what it gets back.

An adapter answers every Action with exactly one Receipt; failures are
data in the receipt, not exceptions.

Every Action is classified up front as ``required`` or ``best_effort``.
The executor aborts the run on a failed required action and carries on
past a failed best-effort one.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

Policy = Literal["required", "best_effort"]


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """A requested host change to be executed by an adapter.

    Guards are evaluated at the moment the action runs, not when the
    plan is built, so earlier actions can satisfy them:

        only_if_exists   skip unless this path exists
        only_if_command  skip unless this command resolves on PATH
    """

    id: str                         # "<step>:<what>", unique within a plan
    name: str = ""                  # optional display label
    adapter: str                    # registry key of the handling adapter
    step: str = ""                  # pipeline step the action belongs to
    policy: Policy = "required"
    params: dict[str, Any] = Field(default_factory=dict)

    only_if_exists: str | None = None
    only_if_command: str | None = None

    @property
    def required(self) -> bool:
        return self.policy == "required"


class Receipt(BaseModel):
    """Outcome of one action.

    ``failed`` carries the error text; adapters never raise instead.
    A ``skipped`` receipt means the host already matched the desired
    state, a guard was not met, or the run was a dry-run.
    """

    adapter: str
    action_id: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @classmethod
    def success(
        cls,
        adapter: str,
        action_id: str,
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """The action changed the host as requested."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="ok",
            output=output,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        adapter: str,
        action_id: str,
        error: str,
        **kwargs: Any,
    ) -> Receipt:
        """The action could not be completed; ``error`` says why."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="failed",
            error=error,
            **kwargs,
        )

    @classmethod
    def skip(
        cls,
        adapter: str,
        action_id: str,
        reason: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Nothing was done; ``reason`` lands in ``output``."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="skipped",
            output=reason,
            **kwargs,
        )

"""
Mock adapter — stands in for apt, pip, npm, git or a shell command.

Tests register one per host tool so a full provisioning plan can run
without root, network or package managers. Every call is recorded;
scripted receipts override the default success per action ID.
"""

from __future__ import annotations

from aipt.adapters.base import Adapter, ExecutionContext
from aipt.core.models.action import Receipt


class MockAdapter(Adapter):
    """Recording test double for a host tool adapter."""

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] executed",
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._scripted: dict[str, Receipt] = {}
        self._calls: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        return self._calls

    @property
    def call_count(self) -> int:
        return len(self._calls)

    @property
    def called_ids(self) -> list[str]:
        """Action IDs in the order they reached this adapter."""
        return [ctx.action.id for ctx in self._calls]

    def is_available(self) -> bool:
        return self._available

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        self._scripted[action_id] = receipt

    def set_failure(self, action_id: str, error: str = "Mock failure") -> None:
        """Make the given action come back failed, as a broken install would."""
        self.set_response(
            action_id,
            Receipt.failure(adapter=self._name, action_id=action_id, error=error),
        )

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._calls.append(context)
        action_id = context.action.id
        scripted = self._scripted.get(action_id)
        if scripted is not None:
            return scripted
        return Receipt.success(
            adapter=self._name,
            action_id=action_id,
            output=self._default_output,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        self._calls.clear()
        self._scripted.clear()

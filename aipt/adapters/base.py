"""
Adapter base — the seam between the provisioning engine and the host.

Each adapter owns one host tool (apt-get, python, node/npm, git) or the
local filesystem. Actions reach adapters only through the registry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from aipt.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """The action being run and the parameters it runs with."""

    action: Action
    dry_run: bool = False
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def working_dir(self) -> str | None:
        """Working directory override for the action, if any."""
        return self.params.get("cwd")


class Adapter(ABC):
    """One host tool, driven by Actions, answering with Receipts.

    Implementations report every failure in the receipt; an exception
    leaving ``execute`` is a bug (the registry converts it, but logs it
    as an error). New adapters are added to ``default_registry``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier that ``Action.adapter`` refers to."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the underlying tool is installed (a cheap PATH probe)."""

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Check the action's params before anything runs.

        Returns:
            ``(True, "")`` or ``(False, reason)``.
        """

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Perform the action; a failed receipt, never an exception."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"

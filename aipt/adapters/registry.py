"""
Adapter registry — dispatch from an Action to the tool that performs it.

The executor hands every action to ``execute_action`` and gets a Receipt
back. Between the two, the registry checks the action's guards against
the live host, picks the adapter (or the mock), validates, and honours
dry-run. Nothing escapes as an exception.
"""

from __future__ import annotations

import logging
import shutil
import time
from pathlib import Path
from typing import Any

from aipt.adapters.base import Adapter, ExecutionContext
from aipt.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


def check_guards(action: Action) -> str | None:
    """Evaluate an action's guards against the host as it is right now.

    Returns:
        The reason the action should be skipped, or None if it should run.
    """
    if action.only_if_exists and not Path(action.only_if_exists).exists():
        return f"Not present: {action.only_if_exists}"
    if action.only_if_command and shutil.which(action.only_if_command) is None:
        return f"Not on PATH: {action.only_if_command}"
    return None


class AdapterRegistry:
    """Adapters by name, plus the dispatch path every action goes through.

    In mock mode no registered adapter is used: actions go to the custom
    mock given to ``set_mock_mode``, or succeed without doing anything.
    """

    def __init__(self, mock_mode: bool = False):
        self._adapters: dict[str, Adapter] = {}
        self._mock_mode = mock_mode
        self._mock_adapter: Adapter | None = None

    @property
    def mock_mode(self) -> bool:
        return self._mock_mode

    def set_mock_mode(self, enabled: bool, mock_adapter: Adapter | None = None) -> None:
        self._mock_mode = enabled
        self._mock_adapter = mock_adapter

    # ── Registration ────────────────────────────────────────────

    def register(self, adapter: Adapter) -> None:
        if adapter.name in self._adapters:
            logger.warning("Replacing adapter %r", adapter.name)
        self._adapters[adapter.name] = adapter
        logger.debug("Adapter %r registered (%s)", adapter.name, type(adapter).__name__)

    def unregister(self, name: str) -> None:
        self._adapters.pop(name, None)

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def list_adapters(self) -> list[str]:
        return list(self._adapters)

    def adapter_status(self) -> dict[str, dict[str, Any]]:
        """Which host tools are present, keyed by adapter name."""
        status: dict[str, dict[str, Any]] = {}
        for name, adapter in self._adapters.items():
            try:
                available = bool(adapter.is_available())
            except Exception as e:
                logger.debug("Availability probe for %s raised: %s", name, e)
                available = False
            status[name] = {
                "name": name,
                "available": available,
                "type": type(adapter).__name__,
            }
        return status

    # ── Dispatch ────────────────────────────────────────────────

    def execute_action(self, action: Action, dry_run: bool = False) -> Receipt:
        """Run one action and return its receipt.

        Order: guards, adapter lookup, validation, dry-run short-circuit,
        execution. The receipt's ``duration_ms`` covers the whole path.
        """
        started = time.monotonic()
        receipt = self._dispatch(action, dry_run)
        if not receipt.duration_ms:
            receipt.duration_ms = int((time.monotonic() - started) * 1000)
        return receipt

    def _resolve(self, action: Action) -> Adapter | None:
        if self._mock_mode:
            return self._mock_adapter
        return self._adapters.get(action.adapter)

    def _dispatch(self, action: Action, dry_run: bool) -> Receipt:
        reason = check_guards(action)
        if reason:
            logger.debug("Guard not met for %s: %s", action.id, reason)
            return Receipt.skip(
                adapter=action.adapter,
                action_id=action.id,
                reason=reason,
                metadata={"guard": True},
            )

        adapter = self._resolve(action)
        if adapter is None and self._mock_mode:
            return Receipt.success(
                adapter=action.adapter,
                action_id=action.id,
                output=f"[mock] {action.adapter}:{action.id} executed",
                metadata={"mock": True, "dry_run": dry_run},
            )
        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )

        context = ExecutionContext(action=action, dry_run=dry_run, params=action.params)

        try:
            valid, problem = adapter.validate(context)
        except Exception as e:
            valid, problem = False, f"validator raised {e}"
        if not valid:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation failed: {problem}",
            )

        if dry_run:
            return Receipt.skip(
                adapter=action.adapter,
                action_id=action.id,
                reason=f"[dry-run] Would execute {action.adapter}:{action.id}",
                metadata={"dry_run": True},
            )

        try:
            return adapter.execute(context)
        except Exception as e:
            logger.error("Adapter %s raised on %s: %s", action.adapter, action.id, e)
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Unexpected error: {e}",
            )

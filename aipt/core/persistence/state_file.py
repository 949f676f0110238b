"""
State file — ``<state_dir>/state.json``, the last run at a glance.

Written atomically (temp file in the same directory, then rename) so a
host that loses power mid-run never ends up with a half-written file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from aipt.core.models.state import HostState

logger = logging.getLogger(__name__)

DEFAULT_STATE_FILE = "state.json"


def default_state_path(state_dir: Path) -> Path:
    return state_dir / DEFAULT_STATE_FILE


def load_state(path: Path) -> HostState:
    """Read the state file; a missing or unusable file means a fresh state."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("No state at %s yet", path)
        return HostState()
    except OSError as e:
        logger.warning("Unreadable state file %s (%s), ignoring it", path, e)
        return HostState()

    try:
        return HostState.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning("Discarding invalid state file %s: %s", path, e)
        return HostState()


def save_state(state: HostState, path: Path) -> None:
    """Stamp ``updated_at`` and replace the state file atomically.

    Raises:
        OSError: If the directory or file cannot be written.
    """
    state.touch()
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = state.model_dump_json(indent=2) + "\n"

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".state_", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.debug("State written to %s", path)

"""
Privilege gate — provisioning must run as root.

Checked before anything touches the host: no package operation, file
write, audit entry or state update happens for a non-root caller.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


class PrivilegeError(Exception):
    """Raised when the process is not running with root privileges."""


def is_root() -> bool:
    return os.geteuid() == 0


def require_root() -> None:
    """Abort unless the effective uid is 0.

    Raises:
        PrivilegeError: If not running as root.
    """
    if is_root():
        return
    logger.debug("Privilege check failed (euid=%d)", os.geteuid())
    raise PrivilegeError("Please run as root (e.g. sudo aipt-setup).")

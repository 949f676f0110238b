"""
Configuration loader — reads an optional profile override into domain models.

With no override file the built-in catalog is used as-is, so a bare
``aipt-setup`` provisions exactly the fixed host layout. An override
file is YAML whose keys map onto ``ProvisionProfile`` fields; keys it
does not mention keep their defaults.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from aipt.core.models.profile import ProvisionProfile

logger = logging.getLogger(__name__)

# Env var pointing at an override file
CONFIG_ENV_VAR = "AIPT_CONFIG"

# Host-wide override location, used only when present
SYSTEM_CONFIG_FILE = Path("/etc/aipt/profile.yml")


class ConfigError(Exception):
    """Raised when the profile override is invalid or missing."""


def find_profile_file(explicit: Path | None = None) -> Path | None:
    """Resolve which override file to load, if any.

    Precedence: explicit path > AIPT_CONFIG > /etc/aipt/profile.yml.
    An explicit path or env var is returned even if it does not exist,
    so that the loader can report it; the system file is only returned
    when present.
    """
    if explicit is not None:
        return explicit

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)

    if SYSTEM_CONFIG_FILE.is_file():
        return SYSTEM_CONFIG_FILE

    return None


def load_profile(path: Path | None = None) -> ProvisionProfile:
    """Load the provisioning profile.

    Args:
        path: Explicit override file. If None, the usual lookup applies
            and the built-in defaults are used when nothing is found.

    Returns:
        Validated ProvisionProfile.

    Raises:
        ConfigError: If the override file is missing or invalid.
    """
    path = find_profile_file(path)
    if path is None:
        logger.debug("No profile override — using built-in catalog")
        return ProvisionProfile()

    if not path.is_file():
        raise ConfigError(f"Profile file not found: {path}")

    logger.debug("Loading profile override from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "profile" key or be flat
    profile_data = data.get("profile", data)
    if not isinstance(profile_data, dict):
        raise ConfigError(f"Expected 'profile' to be a mapping in {path}")

    try:
        profile = ProvisionProfile.model_validate(profile_data)
    except Exception as e:
        raise ConfigError(f"Invalid profile configuration: {e}") from e

    logger.info(
        "Loaded profile from %s (%d libraries, %d wrappers)",
        path,
        len(profile.security_libraries),
        len(profile.wrappers),
    )
    return profile

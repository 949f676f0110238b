"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from aipt.adapters.mock import MockAdapter
from aipt.adapters.registry import AdapterRegistry
from aipt.adapters.shell.filesystem import FilesystemAdapter
from aipt.core.models.profile import ProvisionProfile

# Adapters that would touch the real host (package managers, network)
HOST_ADAPTERS = ("apt", "node", "python", "git", "shell")


@pytest.fixture
def tmp_state_dir(tmp_path: Path) -> Path:
    """Return a temporary directory for state files."""
    state_dir = tmp_path / "state"
    state_dir.mkdir()
    return state_dir


@pytest.fixture
def profile(tmp_path: Path) -> ProvisionProfile:
    """Default catalog with every host path moved under tmp_path."""
    root = tmp_path / "host"
    return ProvisionProfile(
        base_dir=str(root / "opt" / "ai-pt"),
        bin_dir=str(root / "usr" / "local" / "bin"),
        applications_dir=str(root / "usr" / "share" / "applications"),
        desktop_directories_dir=str(root / "usr" / "share" / "desktop-directories"),
        menus_merged_dir=str(root / "etc" / "xdg" / "menus" / "applications-merged"),
        state_dir=str(root / "var" / "lib" / "aipt"),
    )


@pytest.fixture
def host_mocks() -> dict[str, MockAdapter]:
    """One mock per adapter that would touch the real host."""
    return {name: MockAdapter(adapter_name=name) for name in HOST_ADAPTERS}


@pytest.fixture
def registry(host_mocks: dict[str, MockAdapter]) -> AdapterRegistry:
    """Registry with mocked host tools and the real filesystem adapter."""
    reg = AdapterRegistry()
    for mock in host_mocks.values():
        reg.register(mock)
    reg.register(FilesystemAdapter())
    return reg


@pytest.fixture
def as_root(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pretend the test process runs with euid 0."""
    monkeypatch.setattr("os.geteuid", lambda: 0)


@pytest.fixture
def as_user(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pretend the test process runs as an unprivileged user."""
    monkeypatch.setattr("os.geteuid", lambda: 1000)

"""Adapters — host tool bindings (apt, python, node, git, filesystem, shell).

Public re-exports for convenient access.
"""

from aipt.adapters.base import Adapter, ExecutionContext
from aipt.adapters.mock import MockAdapter
from aipt.adapters.registry import AdapterRegistry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]


def default_registry(mock_mode: bool = False) -> AdapterRegistry:
    """Registry with every adapter the provisioning plan uses."""
    from aipt.adapters.languages.node import NodeAdapter
    from aipt.adapters.languages.python import PythonAdapter
    from aipt.adapters.packages.apt import AptAdapter
    from aipt.adapters.shell.command import ShellCommandAdapter
    from aipt.adapters.shell.filesystem import FilesystemAdapter
    from aipt.adapters.vcs.git import GitAdapter

    registry = AdapterRegistry(mock_mode=mock_mode)
    registry.register(AptAdapter())
    registry.register(NodeAdapter())
    registry.register(PythonAdapter())
    registry.register(GitAdapter())
    registry.register(FilesystemAdapter())
    registry.register(ShellCommandAdapter())
    return registry

"""Language adapters — python, node."""

from aipt.adapters.languages.node import NodeAdapter
from aipt.adapters.languages.python import PythonAdapter

__all__ = ["NodeAdapter", "PythonAdapter"]

"""System package manager adapters."""

from aipt.adapters.packages.apt import AptAdapter

__all__ = ["AptAdapter"]

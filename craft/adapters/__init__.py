"""Adapters — tool bindings for the app generator, git, npm and the filesystem.

Public re-exports for convenient access.
"""

from craft.adapters.base import Adapter, ExecutionContext
from craft.adapters.mock import MockAdapter
from craft.adapters.registry import AdapterRegistry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
]

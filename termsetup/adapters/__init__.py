"""Adapters — bindings for the external tools provisioning shells out to.

Public re-exports for convenient access.
"""

from termsetup.adapters.base import Adapter, ExecutionContext
from termsetup.adapters.mock import MockAdapter
from termsetup.adapters.registry import AdapterRegistry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
]

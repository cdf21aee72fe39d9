"""Adapters — bindings for the external tools the installer drives.

Public re-exports for convenient access.
"""

from customizer.adapters.base import Adapter, ExecutionContext
from customizer.adapters.mock import MockAdapter, MockSettingsClient
from customizer.adapters.registry import AdapterRegistry, default_registry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "MockSettingsClient",
    "default_registry",
]

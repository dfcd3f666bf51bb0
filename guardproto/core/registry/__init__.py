from .models import (
    HandlerNamespace,
    Implementation,
    ImplementationInfo,
    InlineClause,
    as_implementation,
    build_implementation,
    clause,
    implements,
)
from .registry import ProtocolRegistry, default_registry, verify_implementation
from .loader import DirectoryLoader, DiscoveryLoader, RegistryLoader
from .store import PublishedUnit, UnitStore

__all__ = [
    "DirectoryLoader",
    "DiscoveryLoader",
    "HandlerNamespace",
    "Implementation",
    "ImplementationInfo",
    "InlineClause",
    "ProtocolRegistry",
    "PublishedUnit",
    "RegistryLoader",
    "UnitStore",
    "as_implementation",
    "build_implementation",
    "clause",
    "default_registry",
    "implements",
    "verify_implementation",
]

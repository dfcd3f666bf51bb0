from guardproto.core.build import ProtocolBuilder
from guardproto.core.consolidation import ConsolidatedProtocol, Consolidator, consolidate, resolve
from guardproto.core.errors import (
    DuplicateSpecification,
    InvalidSpecification,
    MissingRequiredProtocolDefinition,
    MissingSubjectArgument,
    ProtocolExError,
    ProtocolTestFailure,
    UnimplementedProtocolEx,
    UnknownCallback,
    UnknownProtocol,
)
from guardproto.core.registry import (
    DirectoryLoader,
    Implementation,
    ProtocolRegistry,
    RegistryLoader,
    UnitStore,
    clause,
    default_registry,
    implements,
)
from guardproto.core.spec import (
    define_protocol,
    deftest,
    doc,
    optional,
    protocol,
    required,
    self_test,
)

__version__ = "0.1.0"

__all__ = [
    "ConsolidatedProtocol",
    "Consolidator",
    "DirectoryLoader",
    "DuplicateSpecification",
    "Implementation",
    "InvalidSpecification",
    "MissingRequiredProtocolDefinition",
    "MissingSubjectArgument",
    "ProtocolBuilder",
    "ProtocolExError",
    "ProtocolRegistry",
    "ProtocolTestFailure",
    "RegistryLoader",
    "UnimplementedProtocolEx",
    "UnitStore",
    "UnknownCallback",
    "UnknownProtocol",
    "clause",
    "consolidate",
    "default_registry",
    "define_protocol",
    "deftest",
    "doc",
    "implements",
    "optional",
    "protocol",
    "required",
    "resolve",
    "self_test",
]

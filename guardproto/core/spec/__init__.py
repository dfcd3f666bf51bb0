from .models import (
    AuxDecl,
    CallbackKind,
    DocDecl,
    FunctionDef,
    FunctionHead,
    OptionalCallback,
    RequiredCallback,
    SourceLocation,
    Spec,
    TestCallback,
    TestDecl,
    clean_spec,
)
from .compiler import (
    auxiliary,
    declarations_from_namespace,
    decompose,
    define_protocol,
    deftest,
    doc,
    finalize,
    optional,
    protocol,
    required,
    self_test,
)

__all__ = [
    "AuxDecl",
    "CallbackKind",
    "DocDecl",
    "FunctionDef",
    "FunctionHead",
    "OptionalCallback",
    "RequiredCallback",
    "SourceLocation",
    "Spec",
    "TestCallback",
    "TestDecl",
    "auxiliary",
    "clean_spec",
    "declarations_from_namespace",
    "decompose",
    "define_protocol",
    "deftest",
    "doc",
    "finalize",
    "optional",
    "protocol",
    "required",
    "self_test",
]

from .patterns import (
    ANY,
    Attrs,
    Bind,
    InstanceOf,
    ListOf,
    MapOf,
    MatchSpec,
    Pattern,
    TupleOf,
    Value,
    as_matcher,
    as_pattern,
    when,
)
from .binder import (
    ArgBinding,
    all_of,
    always_true,
    bind,
    compile_predicate,
    guard_from,
    zero_arity_params,
)

__all__ = [
    "ANY",
    "ArgBinding",
    "Attrs",
    "Bind",
    "InstanceOf",
    "ListOf",
    "MapOf",
    "MatchSpec",
    "Pattern",
    "TupleOf",
    "Value",
    "all_of",
    "always_true",
    "as_matcher",
    "as_pattern",
    "bind",
    "compile_predicate",
    "guard_from",
    "when",
    "zero_arity_params",
]

from __future__ import annotations

from typing import Any, Dict, Optional


# Arity reported by DuplicateSpecification when a 0-arity and a 1-arity
# callback of the same name collide (they share one identity slot).
ZERO_ONE_CLASH = -1


class ProtocolExError(Exception):
    """
    Base for every structured protocol error.

    Each subclass declares `kind` and `fields`; tooling should branch on
    `kind` and read the fields from `to_dict()` instead of parsing messages.
    """

    kind: str = "protocol_error"
    fields: tuple = ()

    def __init__(self, **values: Any):
        for f in self.fields:
            setattr(self, f, values.pop(f, None))
        if values:
            raise TypeError(f"{type(self).__name__} got unexpected fields: {sorted(values)}")
        super().__init__(self.message())

    def message(self) -> str:
        return self.kind

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"kind": self.kind}
        for f in self.fields:
            out[f] = _jsonable(getattr(self, f))
        out["message"] = self.message()
        return out


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    return repr(value)


class InvalidSpecification(ProtocolExError):
    """Raised when a protocol declaration is not one of the supported shapes."""

    kind = "invalid_specification"
    fields = ("node",)

    def __init__(self, node: Any):
        super().__init__(node=node)

    def message(self) -> str:
        return f"Unhandled specification node:  {self.node!r}"


class MissingSubjectArgument(ProtocolExError):
    """Raised when a protocol names a subject (`as_name`) that a callback head does not take."""

    kind = "missing_subject_argument"
    fields = ("as_name", "head")

    def __init__(self, as_name: str, head: Any):
        super().__init__(as_name=as_name, head=head)

    def message(self) -> str:
        return f"Missing required name {self.as_name} in:  {self.head!r}"


class DuplicateSpecification(ProtocolExError):
    kind = "duplicate_specification"
    fields = ("name", "arity")

    def __init__(self, name: str, arity: Optional[int]):
        super().__init__(name=name, arity=arity)

    def message(self) -> str:
        if self.arity == ZERO_ONE_CLASH:
            return f"Cannot specify both a 0-arity and 1-arity version of the same function:  {self.name}"
        if self.arity is None:
            return f"Duplicate test specification:  {self.name}"
        return f"Duplicate specification node:  {self.name}/{self.arity}"


class MissingRequiredProtocolDefinition(ProtocolExError):
    """The given implementation is missing a required callback from the protocol."""

    kind = "missing_required_protocol_definition"
    fields = ("protocol", "implementation", "name", "arity")

    def __init__(self, protocol: str, implementation: str, name: str, arity: int):
        super().__init__(protocol=protocol, implementation=implementation, name=name, arity=arity)

    def message(self) -> str:
        impl = str(self.implementation)
        prefix = f"{self.protocol}."
        if impl.startswith(prefix):
            impl = impl[len(prefix):]
        return f"On Protocol `{self.protocol}` missing a required protocol callback on `{impl}` of:  {self.name}/{self.arity}"


class UnimplementedProtocolEx(ProtocolExError):
    """
    Raised at dispatch time when no implementation accepted the arguments of a
    required callback. `value` carries the actual arguments.
    """

    kind = "unimplemented_protocol"
    fields = ("protocol", "name", "arity", "value")

    def __init__(self, protocol: str, name: str, arity: int, value: Any = None):
        super().__init__(protocol=protocol, name=name, arity=arity, value=value)

    def message(self) -> str:
        return f"Unimplemented Protocol of `{self.protocol}` at {self.name}/{self.arity} of value: {self.value!r}"


class ProtocolTestFailure(ProtocolExError):
    """A self-test of one implementation produced a failing outcome."""

    kind = "protocol_test_failure"
    fields = ("protocol", "implementation", "name", "location", "value")

    def __init__(self, protocol: str, implementation: str, name: str, location: Any, value: Any):
        super().__init__(protocol=protocol, implementation=implementation, name=name, location=location, value=value)

    def message(self) -> str:
        return (
            f"\nOn Protocol `{self.protocol}`"
            f"\n\twith type of `{self.implementation}`,"
            f"\n\tfailed test `{self.name}`/{self.location!r}"
            f"\n\twith error value of: {self.value!r}\n\n"
        )


class UnknownProtocol(ProtocolExError):
    kind = "unknown_protocol"
    fields = ("name",)

    def __init__(self, name: str):
        super().__init__(name=name)

    def message(self) -> str:
        return f"Unknown protocol:  {self.name}"


class UnknownCallback(ProtocolExError):
    kind = "unknown_callback"
    fields = ("protocol", "name", "arity")

    def __init__(self, protocol: str, name: str, arity: Optional[int] = None):
        super().__init__(protocol=protocol, name=name, arity=arity)

    def message(self) -> str:
        if self.arity is None:
            return f"Protocol `{self.protocol}` declares no callback `{self.name}`"
        return f"Protocol `{self.protocol}` declares no callback `{self.name}/{self.arity}`"

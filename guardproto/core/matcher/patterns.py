from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from numbers import Number
from typing import Any, Callable, Dict, Mapping, Optional, Tuple


Bindings = Dict[str, Any]
Guard = Callable[[Mapping[str, Any]], bool]


class Pattern(ABC):
    """
    Structural pattern over a single value.

    `match` records captured names into `env` and returns whether the value
    fits. A failed match may leave partial bindings behind; callers match
    into a scratch dict.
    """

    @abstractmethod
    def match(self, value: Any, env: Bindings) -> bool:
        ...

    @abstractmethod
    def describe(self) -> str:
        ...

    def __repr__(self) -> str:
        return self.describe()


class _Wildcard(Pattern):
    def match(self, value: Any, env: Bindings) -> bool:
        return True

    def describe(self) -> str:
        return "_"


ANY: Pattern = _Wildcard()


@dataclass(frozen=True, repr=False)
class Bind(Pattern):
    """Capture the value under `name`. A name bound twice must see equal values."""

    name: str
    inner: Pattern = ANY

    def __post_init__(self) -> None:
        object.__setattr__(self, "inner", as_pattern(self.inner))

    def match(self, value: Any, env: Bindings) -> bool:
        if not self.inner.match(value, env):
            return False
        if self.name in env:
            return env[self.name] == value
        env[self.name] = value
        return True

    def describe(self) -> str:
        if self.inner is ANY:
            return self.name
        return f"{self.inner.describe()} = {self.name}"


@dataclass(frozen=True, repr=False)
class InstanceOf(Pattern):
    types: Tuple[type, ...]

    def __init__(self, *types: type):
        object.__setattr__(self, "types", tuple(types))

    def match(self, value: Any, env: Bindings) -> bool:
        return isinstance(value, self.types)

    def describe(self) -> str:
        return "|".join(t.__name__ for t in self.types)


@dataclass(frozen=True, repr=False)
class Value(Pattern):
    value: Any

    def match(self, value: Any, env: Bindings) -> bool:
        # numbers match by exact type: 1 matches neither 1.0 nor True
        if isinstance(value, Number) or isinstance(self.value, Number):
            if type(value) is not type(self.value):
                return False
        return value == self.value

    def describe(self) -> str:
        return repr(self.value)


@dataclass(frozen=True, repr=False)
class _SequenceOf(Pattern):
    items: Tuple[Pattern, ...]

    seq_type = tuple

    def __init__(self, *items: Any):
        object.__setattr__(self, "items", tuple(as_pattern(i) for i in items))

    def match(self, value: Any, env: Bindings) -> bool:
        if not isinstance(value, self.seq_type) or len(value) != len(self.items):
            return False
        return all(p.match(v, env) for p, v in zip(self.items, value))


class TupleOf(_SequenceOf):
    seq_type = tuple

    def describe(self) -> str:
        return "{" + ", ".join(p.describe() for p in self.items) + "}"


class ListOf(_SequenceOf):
    seq_type = list

    def describe(self) -> str:
        return "[" + ", ".join(p.describe() for p in self.items) + "]"


@dataclass(frozen=True, repr=False)
class MapOf(Pattern):
    """Subset match on a mapping: every listed key must exist and match."""

    entries: Tuple[Tuple[Any, Pattern], ...]

    def __init__(self, entries: Mapping[Any, Any]):
        object.__setattr__(self, "entries", tuple((k, as_pattern(v)) for k, v in entries.items()))

    def match(self, value: Any, env: Bindings) -> bool:
        if not isinstance(value, Mapping):
            return False
        for key, pat in self.entries:
            if key not in value or not pat.match(value[key], env):
                return False
        return True

    def describe(self) -> str:
        return "%{" + ", ".join(f"{k!r} => {p.describe()}" for k, p in self.entries) + "}"


@dataclass(frozen=True, repr=False)
class Attrs(Pattern):
    """Instance of `cls` whose named attributes match the given patterns."""

    cls: type
    attrs: Tuple[Tuple[str, Pattern], ...] = field(default=())

    def __init__(self, cls: type, **attrs: Any):
        object.__setattr__(self, "cls", cls)
        object.__setattr__(self, "attrs", tuple((k, as_pattern(v)) for k, v in attrs.items()))

    def match(self, value: Any, env: Bindings) -> bool:
        if not isinstance(value, self.cls):
            return False
        for attr, pat in self.attrs:
            if not hasattr(value, attr) or not pat.match(getattr(value, attr), env):
                return False
        return True

    def describe(self) -> str:
        inner = ", ".join(f"{k}: {p.describe()}" for k, p in self.attrs)
        return f"%{self.cls.__name__}{{{inner}}}"


def as_pattern(obj: Any) -> Pattern:
    """Coerce plain Python values into patterns."""
    if isinstance(obj, Pattern):
        return obj
    if isinstance(obj, type):
        return InstanceOf(obj)
    if isinstance(obj, tuple):
        return TupleOf(*obj)
    if isinstance(obj, list):
        return ListOf(*obj)
    if isinstance(obj, dict):
        return MapOf(obj)
    return Value(obj)


@dataclass(frozen=True)
class MatchSpec:
    """One matcher entry: a pattern plus an optional guard over its bindings."""

    pattern: Pattern
    guard: Optional[Guard] = None

    def describe(self) -> str:
        if self.guard is None:
            return self.pattern.describe()
        return f"{self.pattern.describe()} when {getattr(self.guard, '__name__', 'guard')}"


def when(pattern: Any, guard: Optional[Guard] = None) -> MatchSpec:
    return MatchSpec(pattern=as_pattern(pattern), guard=guard)


def as_matcher(matcher: Any) -> Tuple[MatchSpec, ...]:
    """
    Normalize what an implementation declares as its matcher.

    Accepts a single pattern-ish value, a MatchSpec, or a list of either.
    A bare tuple is one structural tuple pattern, not a list of matchers.
    """
    if isinstance(matcher, list):
        items = matcher
    else:
        items = [matcher]
    out = []
    for m in items:
        out.append(m if isinstance(m, MatchSpec) else when(m))
    return tuple(out)

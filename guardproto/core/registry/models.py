from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from guardproto.core.errors import InvalidSpecification
from guardproto.core.matcher.patterns import ANY, Guard, MatchSpec, Pattern, as_matcher, as_pattern
from guardproto.core.spec.models import SourceLocation


CallbackId = Tuple[str, int]


@dataclass(frozen=True)
class InlineClause:
    """
    A handler spliced straight into the dispatch chain.

    `patterns` of None means "use the implementation's matcher"; a clause
    without its own guard picks up the matcher guard when consolidated.
    """

    fn: Callable[..., Any]
    patterns: Optional[Tuple[Pattern, ...]] = None
    guard: Optional[Guard] = None

    def accepts(self, args: Sequence[Any]) -> bool:
        """Own patterns and guard only; the matcher is not consulted."""
        env: Dict[str, Any] = {}
        if self.patterns is not None:
            if len(self.patterns) != len(args):
                return False
            if not all(p.match(a, env) for p, a in zip(self.patterns, args)):
                return False
        return self.guard is None or bool(self.guard(env))


def clause(*patterns: Any, guard: Optional[Guard] = None) -> Callable[[Callable[..., Any]], InlineClause]:
    def deco(fn: Callable[..., Any]) -> InlineClause:
        pats = tuple(as_pattern(p) for p in patterns) if patterns else None
        return InlineClause(fn=fn, patterns=pats, guard=guard)

    return deco


@dataclass(frozen=True)
class Implementation:
    protocol: str
    name: str
    matcher: Tuple[MatchSpec, ...] = (MatchSpec(pattern=ANY),)
    priority: int = 0
    handlers: Mapping[CallbackId, Callable[..., Any]] = field(default_factory=dict)
    inline: Mapping[CallbackId, Tuple[InlineClause, ...]] = field(default_factory=dict)
    tests: Mapping[str, Callable[..., Any]] = field(default_factory=dict)
    location: SourceLocation = field(default_factory=SourceLocation)

    @property
    def qualified_name(self) -> str:
        return f"{self.protocol}.{self.name}"

    def exports(self, name: str, arity: int) -> bool:
        return (name, arity) in self.handlers or self.is_inlined(name, arity)

    def is_inlined(self, name: str, arity: int) -> bool:
        return (name, arity) in self.inline

    def handler(self, name: str, arity: int) -> Callable[..., Any]:
        return self.handlers[(name, arity)]

    def inlined(self, name: str, arity: int) -> Tuple[InlineClause, ...]:
        return tuple(self.inline.get((name, arity), ()))

    @property
    def namespace(self) -> "HandlerNamespace":
        return HandlerNamespace(self)

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "protocol": self.protocol,
            "priority": self.priority,
            "matcher": [m.describe() for m in self.matcher],
            "exports": sorted(f"{n}/{a}" for n, a in set(self.handlers) | set(self.inline)),
            "inlined": sorted(f"{n}/{a}" for n, a in self.inline),
            "location": str(self.location),
        }


class HandlerNamespace:
    """Attribute access to an implementation's handlers, routed by argument count."""

    def __init__(self, impl: Implementation):
        self._impl = impl

    def __getattr__(self, name: str) -> Callable[..., Any]:
        impl = self.__dict__["_impl"]
        arities = {a for (n, a) in set(impl.handlers) | set(impl.inline) if n == name}
        if not arities:
            raise AttributeError(f"{impl.qualified_name} has no handler {name!r}")

        def call(*args: Any) -> Any:
            arity = len(args)
            if (name, arity) in impl.handlers:
                return impl.handlers[(name, arity)](*args)
            for c in impl.inlined(name, arity):
                if c.accepts(args):
                    return c.fn(*args)
            if impl.is_inlined(name, arity):
                raise ValueError(f"{impl.qualified_name}.{name}/{arity}: no inline clause accepts {args!r}")
            raise TypeError(f"{impl.qualified_name}.{name} has no arity {arity} (has {sorted(arities)})")

        call.__name__ = name
        return call


@dataclass(frozen=True)
class ImplementationInfo:
    """Discovery feed record."""

    implementation: Implementation
    priority: int = 0
    protocols: Tuple[str, ...] = ()


def positional_arity(fn: Callable[..., Any]) -> int:
    n = 0
    for p in inspect.signature(fn).parameters.values():
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD):
            n += 1
        else:
            raise InvalidSpecification(f"{getattr(fn, '__name__', fn)}: only positional parameters are supported ({p})")
    return n


InlineSpec = Union[CallbackId, Tuple[CallbackId, Sequence[InlineClause]]]


def build_implementation(
    protocol: str,
    ns: Any,
    *,
    name: Optional[str] = None,
    matcher: Any = ANY,
    priority: int = 0,
    inline: Iterable[Any] = (),
) -> Implementation:
    """
    Build an Implementation from a class body or module.

    Public functions become handlers keyed by (name, positional arity);
    functions marked with @self_test become per-implementation test
    overrides. `inline` lists (name, arity) pairs to dispatch directly, and
    InlineClause attributes in the body are inlined under their own name.
    """
    handlers: Dict[CallbackId, Callable[..., Any]] = {}
    tests: Dict[str, Callable[..., Any]] = {}
    inline_map: Dict[CallbackId, List[InlineClause]] = {}
    location = SourceLocation()

    for attr, value in vars(ns).items():
        if attr.startswith("_"):
            continue
        if isinstance(value, InlineClause):
            inline_map.setdefault((attr, positional_arity(value.fn)), []).append(value)
            continue
        if isinstance(value, (list, tuple)) and value and all(isinstance(v, InlineClause) for v in value):
            for c in value:
                inline_map.setdefault((attr, positional_arity(c.fn)), []).append(c)
            continue
        fn = value.__func__ if isinstance(value, staticmethod) else value
        if not inspect.isfunction(fn):
            continue
        if location.file is None:
            location = SourceLocation.of(fn)
        if getattr(fn, "__self_test__", False):
            tests[attr] = fn
            continue
        handlers[(attr, positional_arity(fn))] = fn

    for item in inline:
        key, clauses = _inline_entry(item)
        if clauses is None:
            if key not in handlers:
                raise InvalidSpecification(f"inline {key[0]}/{key[1]} has no handler in {name or getattr(ns, '__name__', ns)}")
            clauses = [InlineClause(fn=handlers[key])]
        inline_map.setdefault(key, []).extend(clauses)

    return Implementation(
        protocol=protocol,
        name=name or getattr(ns, "__name__", str(ns)).rsplit(".", 1)[-1],
        matcher=as_matcher(matcher),
        priority=int(priority or 0),
        handlers=handlers,
        inline={k: tuple(v) for k, v in inline_map.items()},
        tests=tests,
        location=location,
    )


def _inline_entry(item: Any) -> Tuple[CallbackId, Optional[List[InlineClause]]]:
    if isinstance(item, tuple) and len(item) == 2 and isinstance(item[0], str):
        return (item[0], int(item[1])), None
    if isinstance(item, tuple) and len(item) == 2 and isinstance(item[0], tuple):
        (n, a), clauses = item
        return (n, int(a)), list(clauses)
    raise InvalidSpecification(item)


def implements(protocol: str, **options: Any) -> Callable[[Any], Any]:
    """Attach an Implementation to a class without registering it anywhere."""

    def deco(ns: Any) -> Any:
        ns.__implementation__ = build_implementation(protocol, ns, **options)
        return ns

    return deco


def as_implementation(obj: Any) -> Implementation:
    if isinstance(obj, Implementation):
        return obj
    impl = getattr(obj, "__implementation__", None)
    if isinstance(impl, Implementation):
        return impl
    raise TypeError(f"{obj!r} is not an Implementation (use @implements)")

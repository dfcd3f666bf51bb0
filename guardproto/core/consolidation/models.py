from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from guardproto.core.errors import UnknownCallback
from guardproto.core.matcher.binder import Predicate
from guardproto.core.matcher.patterns import Guard
from guardproto.core.registry.models import Implementation
from guardproto.core.spec.models import AuxDecl, Spec, clean_spec
from guardproto.core.testing.runner import ImplementationTests, run_protocol_test


@dataclass(frozen=True)
class Clause:
    """One (predicate, guard, handler) entry of a dispatch chain."""

    predicate: Predicate
    guard: Guard
    handler: Callable[..., Any]
    head: str
    implementation: Optional[str] = None
    inlined: bool = False
    terminal: bool = False

    def describe(self) -> Dict[str, Any]:
        return {
            "head": self.head,
            "implementation": self.implementation,
            "inlined": self.inlined,
            "terminal": self.terminal,
        }


class DispatchChain:
    """
    Ordered clauses for one (name, arity) entry point.

    Dispatch is a linear first-match-wins scan. The last clause is the
    terminal one (unimplemented error or protocol default) and always matches.
    """

    def __init__(self, protocol: str, name: str, arity: int, clauses: Sequence[Clause], doc: str):
        self.protocol = protocol
        self.name = name
        self.arity = arity
        self.clauses: Tuple[Clause, ...] = tuple(clauses)
        self.doc = doc
        self.__doc__ = doc

    def __call__(self, *args: Any) -> Any:
        if len(args) != self.arity:
            raise TypeError(f"{self.protocol}.{self.name}/{self.arity} called with {len(args)} arguments")
        for c in self.clauses:
            env = c.predicate(args)
            if env is None or not c.guard(env):
                continue
            return c.handler(*args)
        raise UnknownCallback(self.protocol, self.name, self.arity)

    @property
    def implementations(self) -> List[str]:
        return [c.implementation for c in self.clauses if c.implementation is not None]

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "arity": self.arity,
            "doc": self.doc,
            "clauses": [c.describe() for c in self.clauses],
        }

    def __repr__(self) -> str:
        return f"<DispatchChain {self.protocol}.{self.name}/{self.arity} clauses={len(self.clauses)}>"


class CallbackDispatcher:
    """All arities of one callback name; routes by argument count."""

    def __init__(self, protocol: str, name: str, chains: Mapping[int, DispatchChain]):
        self.protocol = protocol
        self.name = name
        self._chains = dict(chains)

    def __call__(self, *args: Any) -> Any:
        chain = self._chains.get(len(args))
        if chain is None:
            raise UnknownCallback(self.protocol, self.name, len(args))
        return chain(*args)


class ConsolidatedProtocol:
    """
    The consolidated unit of one protocol.

    Built wholesale by the consolidator and never patched afterwards; a new
    consolidation run produces a new object.

    Callbacks are reachable as attributes (`unit.add(1, 2)`) unless the name
    is taken by the unit itself (`describe`, `spec`, ...); `dispatch` always works.
    """

    def __init__(
        self,
        *,
        spec: Spec,
        chains: Mapping[Tuple[str, int], DispatchChain],
        implementations: Sequence[Implementation],
    ):
        self._spec = clean_spec(spec)
        self._chains: Dict[Tuple[str, int], DispatchChain] = dict(chains)
        self._implementations: Tuple[Implementation, ...] = tuple(implementations)
        self._suites = tuple(ImplementationTests(self._spec, impl) for impl in self._implementations)
        self.auxiliary: Dict[str, AuxDecl] = {a.name: a for a in self._spec.auxiliary}

    @property
    def name(self) -> str:
        return self._spec.protocol

    def spec(self) -> Spec:
        return self._spec

    @property
    def implementations(self) -> List[str]:
        return [impl.name for impl in self._implementations]

    def callbacks(self) -> List[Tuple[str, int]]:
        return sorted(self._chains)

    def chain(self, name: str, arity: int) -> DispatchChain:
        chain = self._chains.get((name, arity))
        if chain is None:
            raise UnknownCallback(self.name, name, arity)
        return chain

    def dispatch(self, name: str, *args: Any) -> Any:
        return self.chain(name, len(args))(*args)

    def __getattr__(self, name: str) -> CallbackDispatcher:
        if name.startswith("_"):
            raise AttributeError(name)
        chains = {a: c for (n, a), c in self.__dict__.get("_chains", {}).items() if n == name}
        if not chains:
            raise AttributeError(f"protocol {self.__dict__['_spec'].protocol!r} has no callback {name!r}")
        return CallbackDispatcher(self.name, name, chains)

    # --- self tests ---

    def run_test(self, name: str, options: Optional[Dict[str, Any]] = None) -> None:
        test = self._spec.get_test(name)
        if test is None:
            raise UnknownCallback(self.name, name)
        run_protocol_test(self._spec, test, self._suites, options if options is not None else {})

    def run_all_tests(self, options: Optional[Dict[str, Any]] = None) -> List[str]:
        ran: List[str] = []
        for name in self._spec.test_names():
            self.run_test(name, options)
            ran.append(name)
        return ran

    def describe(self) -> Dict[str, Any]:
        return {
            "protocol": self.name,
            "as": self._spec.as_name,
            "implementations": [impl.describe() for impl in self._implementations],
            "callbacks": [self._chains[k].describe() for k in sorted(self._chains)],
            "tests": list(self._spec.test_names()),
            "auxiliary": [{"kind": a.kind, "name": a.name} for a in self._spec.auxiliary],
        }

    def __repr__(self) -> str:
        return f"<ConsolidatedProtocol {self.name} callbacks={len(self._chains)} impls={len(self._implementations)}>"

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from guardproto.core.errors import (
    InvalidSpecification,
    MissingRequiredProtocolDefinition,
    UnimplementedProtocolEx,
)
from guardproto.core.matcher.binder import (
    ArgBinding,
    all_of,
    always_true,
    bind,
    compile_predicate,
    guard_from,
    see_also_doc,
    zero_arity_params,
)
from guardproto.core.matcher.patterns import Guard
from guardproto.core.registry.models import Implementation, ImplementationInfo, InlineClause
from guardproto.core.spec.models import FunctionCallback, OptionalCallback, RequiredCallback, Spec

from .models import Clause, ConsolidatedProtocol, DispatchChain

log = logging.getLogger("guardproto.consolidate")

UNDOCUMENTED = "<Undocumented>"

ImplLike = Union[Implementation, ImplementationInfo]


def _match_all(args: Tuple[Any, ...]) -> Dict[str, Any]:
    return {}


def _priority_of(item: ImplLike) -> int:
    return item.priority


def _impl_of(item: ImplLike) -> Implementation:
    return item.implementation if isinstance(item, ImplementationInfo) else item


def order_implementations(items: Iterable[ImplLike]) -> List[Implementation]:
    """Priority descending, then name ascending."""
    ordered = sorted(items, key=lambda i: (-_priority_of(i), _impl_of(i).name))
    return [_impl_of(i) for i in ordered]


def _describe_head(name: str, bindings: Sequence[ArgBinding], guard: Guard) -> str:
    head = f"{name}({', '.join(b.describe() for b in bindings)})"
    if guard is not always_true:
        head += f" when {getattr(guard, '__name__', 'guard')}"
    return head


def _forward(impl: Implementation, name: str, arity: int, *, drop_args: bool = False) -> Callable[..., Any]:
    """Thin clause body: look the handler up on the implementation and call it."""

    if drop_args:
        def call(*_args: Any) -> Any:
            return impl.handler(name, arity)()
    else:
        def call(*args: Any) -> Any:
            return impl.handler(name, arity)(*args)

    call.__name__ = f"{impl.name}.{name}"
    return call


def _unimplemented(protocol: str, name: str, arity: int) -> Callable[..., Any]:
    def raise_unimplemented(*args: Any) -> Any:
        value: Any = args[0] if len(args) == 1 else tuple(args)
        raise UnimplementedProtocolEx(protocol, name, arity, value)

    return raise_unimplemented


def _bounce_to_default(fallback: Callable[..., Any]) -> Callable[..., Any]:
    def bounce(_subject: Any) -> Any:
        return fallback()

    return bounce


class Consolidator:
    """
    Merges independently registered implementations of one protocol into
    guarded dispatch chains, one per (callback name, arity).

    The whole artifact is built in memory; any error aborts before anything
    is returned, so callers never see a partial unit.
    """

    def consolidate(self, spec: Spec, implementations: Iterable[ImplLike]) -> ConsolidatedProtocol:
        items = [i for i in implementations if _impl_of(i).protocol == spec.protocol]
        return self._build(spec, order_implementations(items))

    def resolve(
        self,
        spec: Spec,
        implementations: Sequence[ImplLike],
        *,
        priority_sorted: bool = False,
    ) -> ConsolidatedProtocol:
        """Consolidate an explicit implementation list, in the given order unless `priority_sorted`."""
        items = list(implementations)
        if priority_sorted:
            items = sorted(items, key=lambda i: -_priority_of(i))
        return self._build(spec, [_impl_of(i) for i in items])

    # --- internals ---

    def _build(self, spec: Spec, impls: List[Implementation]) -> ConsolidatedProtocol:
        chains: Dict[Tuple[str, int], DispatchChain] = {}
        for cb in spec.function_callbacks():
            for chain in self._chains_for(spec, cb, impls):
                chains[(chain.name, chain.arity)] = chain

        log.debug(
            "consolidate.build protocol=%s impls=%s chains=%s order=%s",
            spec.protocol,
            len(impls),
            len(chains),
            [i.name for i in impls],
        )
        return ConsolidatedProtocol(spec=spec, chains=chains, implementations=impls)

    def _chains_for(self, spec: Spec, cb: FunctionCallback, impls: List[Implementation]) -> List[DispatchChain]:
        doc = spec.doc_for(cb) or UNDOCUMENTED
        zero = cb.arity == 0
        params = zero_arity_params(spec.as_name) if zero else cb.head.params

        clauses: List[Clause] = []
        for impl in impls:
            if not impl.exports(cb.name, cb.arity):
                if isinstance(cb, RequiredCallback):
                    raise MissingRequiredProtocolDefinition(spec.protocol, impl.qualified_name, cb.name, cb.arity)
                continue
            clauses.extend(self._clauses_for(spec, cb, impl, params, zero))

        protocol = spec.protocol
        arity = len(params)
        terminal_bindings = tuple(ArgBinding(param=p) for p in params)
        if isinstance(cb, RequiredCallback):
            handler = _unimplemented(protocol, cb.name, arity)
        elif zero:
            handler = _bounce_to_default(cb.fallback)
        else:
            handler = cb.fallback
        clauses.append(Clause(
            predicate=_match_all,
            guard=always_true,
            handler=handler,
            head=_describe_head(cb.name, terminal_bindings, always_true),
            terminal=True,
        ))

        chains = [DispatchChain(protocol, cb.name, arity, clauses, doc)]
        if zero:
            chains.append(self._zero_arity_entry(spec, cb))
        return chains

    def _zero_arity_entry(self, spec: Spec, cb: FunctionCallback) -> DispatchChain:
        if isinstance(cb, OptionalCallback):
            handler = cb.fallback
        else:
            handler = _unimplemented(spec.protocol, cb.name, 0)
        terminal = Clause(
            predicate=_match_all,
            guard=always_true,
            handler=handler,
            head=f"{cb.name}()",
            terminal=True,
        )
        return DispatchChain(spec.protocol, cb.name, 0, [terminal], see_also_doc(cb.name))

    def _clauses_for(
        self,
        spec: Spec,
        cb: FunctionCallback,
        impl: Implementation,
        params: Tuple[str, ...],
        zero: bool,
    ) -> List[Clause]:
        bindings = bind(spec.as_name, impl.matcher, params)
        matcher_guard = all_of([g for g in (cb.head.guard, guard_from(impl.matcher)) if g is not None])
        predicate = compile_predicate(bindings)

        if not impl.is_inlined(cb.name, cb.arity):
            return [Clause(
                predicate=predicate,
                guard=matcher_guard,
                handler=_forward(impl, cb.name, cb.arity, drop_args=zero),
                head=_describe_head(cb.name, bindings, matcher_guard),
                implementation=impl.name,
            )]

        out: List[Clause] = []
        for inline in impl.inlined(cb.name, cb.arity):
            out.append(self._inline_clause(cb, impl, inline, params, bindings, predicate, matcher_guard, zero))
        return out

    def _inline_clause(
        self,
        cb: FunctionCallback,
        impl: Implementation,
        inline: InlineClause,
        params: Tuple[str, ...],
        bindings: Tuple[ArgBinding, ...],
        predicate: Any,
        matcher_guard: Guard,
        zero: bool,
    ) -> Clause:
        if inline.patterns is not None and not zero:
            if len(inline.patterns) != len(params):
                raise InvalidSpecification(f"{impl.qualified_name}: inline clause for {cb.name}/{cb.arity} has {len(inline.patterns)} patterns")
            bindings = tuple(ArgBinding(param=p, pattern=pat) for p, pat in zip(params, inline.patterns))
            predicate = compile_predicate(bindings)

        # an inline clause with no guard of its own is re-guarded by the matcher
        if inline.guard is None:
            guard = matcher_guard
        else:
            guard = all_of([g for g in (cb.head.guard, inline.guard) if g is not None])

        fn = inline.fn
        handler = (lambda _subject, _fn=fn: _fn()) if zero else fn
        return Clause(
            predicate=predicate,
            guard=guard,
            handler=handler,
            head=_describe_head(cb.name, bindings, guard),
            implementation=impl.name,
            inlined=True,
        )


def consolidate(spec: Spec, implementations: Iterable[ImplLike]) -> ConsolidatedProtocol:
    return Consolidator().consolidate(spec, implementations)


def resolve(spec: Spec, implementations: Sequence[ImplLike], *, priority_sorted: bool = False) -> ConsolidatedProtocol:
    return Consolidator().resolve(spec, implementations, priority_sorted=priority_sorted)

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional

from guardproto.core.errors import MissingRequiredProtocolDefinition, UnknownProtocol
from guardproto.core.spec.compiler import define_protocol
from guardproto.core.spec.compiler import protocol as protocol_class
from guardproto.core.spec.models import RequiredCallback, Spec

from .models import Implementation, as_implementation, build_implementation

log = logging.getLogger("guardproto.registry")


def verify_implementation(spec: Spec, impl: Implementation) -> None:
    """Every required callback must be exported by the implementation."""
    for cb in spec.function_callbacks():
        if isinstance(cb, RequiredCallback) and not impl.exports(cb.name, cb.arity):
            raise MissingRequiredProtocolDefinition(spec.protocol, impl.qualified_name, cb.name, cb.arity)


class ProtocolRegistry:
    """
    Process-wide registry of protocol specs and their implementations.

    Populated once at start-up (decorators, plugin directories) and read by
    the consolidation step. Specs are immutable once defined.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._specs: Dict[str, Spec] = {}
        self._impls: Dict[str, Dict[str, Implementation]] = {}

    # --- specs ---

    def add_spec(self, spec: Spec) -> Spec:
        with self._lock:
            existing = self._specs.get(spec.protocol)
            if existing is not None and existing is not spec:
                raise ValueError(f"Duplicate protocol name: {spec.protocol}")
            self._specs[spec.protocol] = spec
            self._impls.setdefault(spec.protocol, {})
        return spec

    def define(self, name: str, declarations: Iterable[Any], *, as_name: Optional[str] = None) -> Spec:
        return self.add_spec(define_protocol(name, declarations, as_name=as_name))

    def protocol(self, name: Optional[str] = None, *, as_name: Optional[str] = None) -> Callable[[Any], Any]:
        """Class decorator: the class body declares the protocol."""

        def deco(ns: Any) -> Any:
            ns = protocol_class(name, as_name=as_name)(ns)
            self.add_spec(ns.__protocol_spec__)
            return ns

        return deco

    def get_spec(self, name: str) -> Spec:
        spec = self._specs.get(name)
        if spec is None:
            raise UnknownProtocol(name)
        return spec

    def protocols(self) -> List[str]:
        return sorted(self._specs.keys())

    # --- implementations ---

    def register(self, obj: Any) -> Implementation:
        impl = as_implementation(obj)
        with self._lock:
            spec = self.get_spec(impl.protocol)
            verify_implementation(spec, impl)
            bucket = self._impls.setdefault(impl.protocol, {})
            if impl.name in bucket and bucket[impl.name] is not impl:
                raise ValueError(f"Duplicate implementation name: {impl.qualified_name}")
            bucket[impl.name] = impl
        log.debug("registry.register impl=%s priority=%s", impl.qualified_name, impl.priority)
        return impl

    def implementation(self, protocol: str, **options: Any) -> Callable[[Any], Any]:
        """Class decorator: build an Implementation from the class body and register it."""

        def deco(ns: Any) -> Any:
            impl = build_implementation(protocol, ns, **options)
            ns.__implementation__ = impl
            self.register(impl)
            return ns

        return deco

    def implementations(self, protocol: str) -> List[Implementation]:
        self.get_spec(protocol)
        return [self._impls[protocol][n] for n in sorted(self._impls.get(protocol, {}))]

    def clear(self) -> None:
        with self._lock:
            self._specs.clear()
            self._impls.clear()


default_registry = ProtocolRegistry()

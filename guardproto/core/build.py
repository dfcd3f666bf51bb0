from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from guardproto.core.consolidation.consolidator import Consolidator
from guardproto.core.consolidation.models import ConsolidatedProtocol
from guardproto.core.errors import ProtocolExError, UnknownProtocol
from guardproto.core.observability.metrics import record_consolidation
from guardproto.core.registry.loader import DiscoveryLoader
from guardproto.core.registry.store import UnitStore

log = logging.getLogger("guardproto.consolidate")


class ProtocolBuilder:
    """
    Discovery -> consolidation -> self-test -> publication, per protocol.

    A protocol is published only after its unit is fully built (and, when
    enabled, its self-tests pass). Any failure leaves the previously
    published unit in place.
    """

    def __init__(
        self,
        loader: DiscoveryLoader,
        store: Optional[UnitStore] = None,
        *,
        run_tests: bool = True,
        consolidator: Optional[Consolidator] = None,
    ):
        self.loader = loader
        self.store = store if store is not None else UnitStore()
        self.run_tests = run_tests
        self.consolidator = consolidator or Consolidator()

    def consolidate(self, protocol: str, *, options: Optional[Dict[str, Any]] = None) -> ConsolidatedProtocol:
        with self.store.lock_for(protocol):
            return self._publish(protocol, lambda spec: self.consolidator.consolidate(
                spec, self.loader.list_implementations(protocol)
            ), options)

    def resolve(
        self,
        protocol: str,
        implementation_names: Sequence[str],
        *,
        priority_sorted: bool = False,
        options: Optional[Dict[str, Any]] = None,
    ) -> ConsolidatedProtocol:
        """Consolidate only the named implementations, in the given order unless `priority_sorted`."""

        def build(spec):
            by_name = {i.implementation.name: i for i in self.loader.list_implementations(protocol)}
            missing = [n for n in implementation_names if n not in by_name]
            if missing:
                raise ValueError(f"Unknown implementations for {protocol}: {missing}")
            return self.consolidator.resolve(
                spec,
                [by_name[n] for n in implementation_names],
                priority_sorted=priority_sorted,
            )

        with self.store.lock_for(protocol):
            return self._publish(protocol, build, options)

    def consolidate_all(self, *, options: Optional[Dict[str, Any]] = None) -> List[ConsolidatedProtocol]:
        return [self.consolidate(name, options=options) for name in self.loader.list_protocols()]

    def get(self, protocol: str) -> ConsolidatedProtocol:
        unit = self.store.get(protocol)
        if unit is None:
            raise UnknownProtocol(protocol)
        return unit

    # --- internals ---

    def _publish(self, protocol: str, build, options: Optional[Dict[str, Any]]) -> ConsolidatedProtocol:
        t0 = time.perf_counter()
        try:
            spec = self.loader.load_spec(protocol)
            unit = build(spec)
            if self.run_tests:
                unit.run_all_tests(options if options is not None else {})
        except (ProtocolExError, ValueError) as e:
            dur = time.perf_counter() - t0
            record_consolidation(protocol, "failed", dur)
            log.warning(
                "consolidate.failed protocol=%s kind=%s error=%s",
                protocol,
                getattr(e, "kind", type(e).__name__),
                e,
            )
            raise

        source = getattr(self.loader, "plugins_dir", None)
        self.store.create_unit(protocol, unit, str(source) if source is not None else "registry")
        dur = time.perf_counter() - t0
        record_consolidation(protocol, "ok", dur)
        log.info(
            "consolidate.ok protocol=%s impls=%s callbacks=%s tests=%s ms=%s",
            protocol,
            len(unit.implementations),
            len(unit.callbacks()),
            len(unit.spec().tests()),
            int(round(dur * 1000)),
        )
        return unit

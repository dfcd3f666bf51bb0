from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

log = logging.getLogger("guardproto.store")


@dataclass(frozen=True)
class PublishedUnit:
    name: str
    artifact: Any
    source_location: Optional[str]
    published_at: float
    generation: int


class UnitStore:
    """
    In-memory unit store.

    create_unit swaps the named reference in one assignment, so readers see
    either the previous unit or the new one, never a missing or half-built
    one. Same-name publishers serialize through `lock_for(name)`.
    """

    def __init__(self) -> None:
        self._units: Dict[str, PublishedUnit] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._generation = 0

    def lock_for(self, name: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(name)
            if lock is None:
                lock = threading.Lock()
                self._locks[name] = lock
            return lock

    def create_unit(self, name: str, artifact: Any, source_location: Optional[str] = None) -> PublishedUnit:
        with self._locks_guard:
            self._generation += 1
            gen = self._generation
        unit = PublishedUnit(
            name=name,
            artifact=artifact,
            source_location=source_location,
            published_at=time.time(),
            generation=gen,
        )
        replaced = name in self._units
        self._units[name] = unit
        log.debug("store.create_unit name=%s generation=%s replaced=%s", name, gen, replaced)
        return unit

    def get(self, name: str) -> Optional[Any]:
        unit = self._units.get(name)
        return unit.artifact if unit is not None else None

    def get_unit(self, name: str) -> Optional[PublishedUnit]:
        return self._units.get(name)

    def names(self) -> List[str]:
        return sorted(self._units.keys())

    def clear(self) -> None:
        self._units.clear()

from __future__ import annotations

import hashlib
import importlib.util
import logging
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, List, Optional, Tuple

from guardproto.core.errors import ProtocolExError
from guardproto.core.spec.models import Spec

from .models import Implementation, ImplementationInfo, as_implementation
from .registry import ProtocolRegistry, default_registry

log = logging.getLogger("guardproto.loader")


class DiscoveryLoader(ABC):
    """Feed of protocol specs and implementations consumed by consolidation."""

    @abstractmethod
    def list_protocols(self) -> List[str]:
        ...

    @abstractmethod
    def load_spec(self, protocol: str) -> Spec:
        """Raises UnknownProtocol when the protocol was never defined."""

    @abstractmethod
    def list_implementations(self, protocol: str) -> List[ImplementationInfo]:
        """Implementations that declare membership in `protocol`, with their priority."""


class RegistryLoader(DiscoveryLoader):
    def __init__(self, registry: Optional[ProtocolRegistry] = None):
        self.registry = registry if registry is not None else default_registry

    def list_protocols(self) -> List[str]:
        return self.registry.protocols()

    def load_spec(self, protocol: str) -> Spec:
        return self.registry.get_spec(protocol)

    def list_implementations(self, protocol: str) -> List[ImplementationInfo]:
        return [
            ImplementationInfo(implementation=impl, priority=impl.priority, protocols=(impl.protocol,))
            for impl in self.registry.implementations(protocol)
        ]


class DirectoryLoader(RegistryLoader):
    """
    Discovers plugin modules from a directory.

    Each `*.py` module (names starting with `_` are skipped) may export:
      PROTOCOL / PROTOCOLS           = Spec or @protocol-decorated class (or a list)
      IMPLEMENTATIONS                = list of Implementation or @implements classes

    A module that fails to import, or an export that fails to register, is
    skipped with a warning. Specs from all modules are registered before any
    implementation, so file order does not matter.
    """

    def __init__(self, plugins_dir: str | Path, registry: Optional[ProtocolRegistry] = None):
        super().__init__(registry if registry is not None else ProtocolRegistry())
        self._plugins_dir = Path(plugins_dir)
        self._plugin_files: Dict[str, Path] = {}
        self._fingerprint: Optional[str] = None
        self.warnings: List[Dict[str, Any]] = []

    @property
    def plugins_dir(self) -> Path:
        return self._plugins_dir

    @property
    def fingerprint(self) -> str:
        if self._fingerprint is None:
            self._fingerprint = self._compute_fingerprint()
        return self._fingerprint

    def load_all(self) -> Tuple[int, int]:
        """Returns (protocol_count, implementation_count)."""
        if not self._plugins_dir.exists():
            self.warnings.append({
                "code": "plugins.dir_missing",
                "severity": "warn",
                "message": f"No plugin directory found at {self._plugins_dir}",
                "data": {"path": str(self._plugins_dir)},
            })
            log.warning("loader.dir_missing path=%s", self._plugins_dir)
            return 0, 0

        specs: List[Spec] = []
        impls: List[Implementation] = []

        for py in sorted(self._plugins_dir.glob("*.py")):
            if py.name.startswith("_"):
                continue
            try:
                module = self._load_module(py)
                found_specs = [_as_spec(s) for s in _exported(module, "PROTOCOL", "PROTOCOLS")]
                found_impls = [as_implementation(i) for i in _exported(module, "IMPLEMENTATIONS")]
            except Exception as e:
                self.warnings.append({
                    "code": "plugins.load_failed",
                    "severity": "warn",
                    "message": f"Failed to load plugin {py.name}: {e}",
                    "data": {"module_path": str(py)},
                })
                log.warning("loader.load_failed file=%s error=%s", py.name, e)
                continue

            if not found_specs and not found_impls:
                self.warnings.append({
                    "code": "plugins.missing_symbol",
                    "severity": "warn",
                    "message": f"Plugin {py.name} exports neither PROTOCOL nor IMPLEMENTATIONS; skipped",
                    "data": {"module_path": str(py)},
                })
                continue

            self._plugin_files[py.stem] = py
            specs.extend(found_specs)
            impls.extend(found_impls)

        n_specs = 0
        for spec in specs:
            try:
                self.registry.add_spec(spec)
            except (ProtocolExError, ValueError) as e:
                self._register_failed(spec.protocol, e)
                continue
            n_specs += 1

        n_impls = 0
        for impl in impls:
            try:
                self.registry.register(impl)
            except (ProtocolExError, ValueError) as e:
                self._register_failed(impl.qualified_name, e)
                continue
            n_impls += 1

        log.debug(
            "loader.load_all dir=%s protocols=%s implementations=%s warnings=%s",
            self._plugins_dir,
            n_specs,
            n_impls,
            len(self.warnings),
        )
        return n_specs, n_impls

    def plugin_files(self) -> Dict[str, str]:
        return {k: str(v) for k, v in sorted(self._plugin_files.items())}

    # --- internals ---

    def _register_failed(self, name: str, e: Exception) -> None:
        # one bad plugin must not keep other protocols from loading
        self.warnings.append({
            "code": "plugins.register_failed",
            "severity": "warn",
            "message": f"Failed to register {name}: {str(e).strip()}",
            "data": {"name": name, "kind": getattr(e, "kind", type(e).__name__)},
        })
        log.warning("loader.register_failed name=%s error=%s", name, e)

    def _compute_fingerprint(self) -> str:
        h = hashlib.sha256()
        if not self._plugins_dir.exists():
            return h.hexdigest()[:16]
        for py in sorted(self._plugins_dir.glob("*.py")):
            if py.name.startswith("_"):
                continue
            h.update(py.name.encode("utf-8"))
            h.update(b"\0")
            h.update(py.read_bytes())
            h.update(b"\0")
        return h.hexdigest()[:16]

    def _load_module(self, file_path: Path) -> ModuleType:
        file_path = file_path.resolve()

        # module name must be deterministic across interpreter restarts
        path_key = str(file_path).replace("\\", "/").lower().encode("utf-8")
        path_hash = hashlib.sha1(path_key).hexdigest()[:16]
        module_name = f"guardproto_plugin_{file_path.stem}_{path_hash}"

        spec = importlib.util.spec_from_file_location(module_name, str(file_path))
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot create module spec for {file_path}")

        module = importlib.util.module_from_spec(spec)

        # register before exec_module; dataclasses resolve their module through sys.modules
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception:
            sys.modules.pop(module_name, None)
            raise
        return module


def _exported(module: ModuleType, *symbols: str) -> List[Any]:
    out: List[Any] = []
    for sym in symbols:
        value = getattr(module, sym, None)
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            out.extend(value)
        else:
            out.append(value)
    return out


def _as_spec(obj: Any) -> Spec:
    if isinstance(obj, Spec):
        return obj
    spec = getattr(obj, "__protocol_spec__", None)
    if isinstance(spec, Spec):
        return spec
    raise TypeError(f"{obj!r} is not a protocol Spec")

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from guardproto.core.build import ProtocolBuilder
from guardproto.core.config import Settings, get_settings
from guardproto.core.errors import ProtocolExError
from guardproto.core.registry.loader import DirectoryLoader

log = logging.getLogger("guardproto.api")

BUILTIN_PLUGINS_DIR = Path(__file__).resolve().parents[1] / "plugins" / "numbers"

_lock = threading.Lock()
_builder: Optional[ProtocolBuilder] = None
_startup_warnings: List[Dict[str, Any]] = []


def build_builder(settings: Settings) -> ProtocolBuilder:
    """Load plugins from the configured directory and (optionally) consolidate everything once."""
    plugins_dir = Path(settings.plugins_dir) if settings.plugins_dir else BUILTIN_PLUGINS_DIR
    loader = DirectoryLoader(plugins_dir)
    loader.load_all()
    builder = ProtocolBuilder(loader, run_tests=settings.run_tests_on_consolidate)

    if settings.consolidate_on_startup:
        for name in loader.list_protocols():
            try:
                builder.consolidate(name)
            except ProtocolExError as e:
                # one broken protocol must not keep the others from serving
                _startup_warnings.append({
                    "code": "consolidate.failed",
                    "severity": "warn",
                    "message": str(e).strip(),
                    "data": {"protocol": name, "error": e.to_dict()},
                })
                log.warning("startup.consolidate_failed protocol=%s kind=%s", name, e.kind)
    return builder


def get_builder() -> ProtocolBuilder:
    global _builder
    with _lock:
        if _builder is None:
            _builder = build_builder(get_settings())
        return _builder


def warnings() -> List[Dict[str, Any]]:
    builder = get_builder()
    out = list(getattr(builder.loader, "warnings", []))
    out.extend(_startup_warnings)
    return out


def reset_builder() -> None:
    """Test helper: drop the cached builder so the next request re-reads settings."""
    global _builder
    with _lock:
        _builder = None
        _startup_warnings.clear()

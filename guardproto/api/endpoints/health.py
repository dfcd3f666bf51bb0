from __future__ import annotations

from fastapi import APIRouter

from guardproto.api import deps
from guardproto.core.observability.metrics import inc_named

router = APIRouter()


@router.get("/health")
def health():
    inc_named("health")
    builder = deps.get_builder()
    loader = builder.loader
    return {
        "status": "ok",
        "protocols": loader.list_protocols(),
        "published": builder.store.names(),
        "plugins": {
            "dir": str(loader.plugins_dir),
            "fingerprint": loader.fingerprint,
            "files": loader.plugin_files(),
        },
        "warnings": deps.warnings(),
    }

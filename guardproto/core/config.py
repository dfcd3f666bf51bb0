from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel


_TRUE = ("1", "true", "yes", "on")

# env var -> settings field
_ENV_KEYS = {
    "GUARDPROTO_ENV": "env",
    "GUARDPROTO_PLUGINS_DIR": "plugins_dir",
    "GUARDPROTO_RUN_TESTS_ON_CONSOLIDATE": "run_tests_on_consolidate",
    "GUARDPROTO_CONSOLIDATE_ON_STARTUP": "consolidate_on_startup",
    "GUARDPROTO_HOST": "host",
    "GUARDPROTO_PORT": "port",
}


class Settings(BaseModel):
    env: str = "dev"
    plugins_dir: Optional[str] = None
    run_tests_on_consolidate: bool = True
    consolidate_on_startup: bool = True
    host: str = "0.0.0.0"
    port: int = 8001

    @classmethod
    def load(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Resolution order (later wins):
          1) defaults
          2) YAML file named by GUARDPROTO_CONFIG (optional)
          3) GUARDPROTO_* environment variables
        """
        environ = os.environ if environ is None else environ
        data: Dict[str, Any] = {}

        cfg_path = (environ.get("GUARDPROTO_CONFIG") or "").strip()
        if cfg_path:
            data.update(load_yaml_config(Path(cfg_path)))

        for env_key, field_name in _ENV_KEYS.items():
            raw = environ.get(env_key)
            if raw is None or not raw.strip():
                continue
            data[field_name] = _coerce(field_name, raw.strip())

        return cls(**data)


def load_yaml_config(path: Path) -> Dict[str, Any]:
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a mapping at top level")
    section = raw.get("guardproto", raw)
    if not isinstance(section, dict):
        raise ValueError(f"{path}: 'guardproto' must be a mapping")
    return {k: v for k, v in section.items() if k in Settings.model_fields}


def _coerce(field_name: str, raw: str) -> Any:
    annotation = Settings.model_fields[field_name].annotation
    if annotation is bool:
        return raw.lower() in _TRUE
    return raw


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None

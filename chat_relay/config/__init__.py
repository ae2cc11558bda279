"""Unified configuration layer for providers.

Goals
-----
* Merge configuration sources in a predictable order:
    1. Optional external config file (JSON or YAML) pointed to by
       ``CHAT_RELAY_CONFIG_FILE``
    2. Environment variables (e.g. ``OPENAI_MODEL``, ``OLLAMA_ENDPOINT``)
    3. In-code overrides passed to the helper
* Provide a single call site: ``get_provider_config(provider)``.

Built-in defaults (model, endpoint) are owned by each provider's capability
set; this layer only reports what the user configured, so callers can apply
"override, then default" precedence themselves.

Environment Variable Conventions
--------------------------------
<PROVIDER>_MODEL, <PROVIDER>_ENDPOINT, e.g. OPENAI_MODEL, OLLAMA_ENDPOINT.
API keys are deliberately not read here: the registry resolves them from the
variable named by the capability set so the precedence stays explicit.

External Config File (Optional)
-------------------------------
If CHAT_RELAY_CONFIG_FILE is set to a path, we attempt to load JSON first,
then YAML. Structure example:

```
openai:
  model: gpt-4o-mini
claude:
  api_key: sk-ant-...
ollama:
  endpoint: http://gpu-box:11434/api/chat
```

Public API
----------
* get_provider_config(provider: str, overrides: dict | None = None) -> dict
* get_model(provider: str) -> str | None
* reset_config_cache() -> None
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .env import is_placeholder

ENV_FIELD_MAP = {
    "model": "MODEL",
    "endpoint": "ENDPOINT",
}


_FILE_CACHE: Optional[Dict[str, Any]] = None
_FILE_CACHE_PATH: Optional[str] = None
_DOTENV_LOADED = False


def _load_dotenv_once() -> None:
    """Lightweight .env loader.

    Parses KEY=VALUE lines, ignoring comments and blank lines. Overrides
    existing environment variables only if their current values appear to be
    placeholders.
    """
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    path = os.getenv("DOTENV_FILE", ".env")
    if not os.path.isfile(path):
        _DOTENV_LOADED = True
        return
    try:
        with open(path, "r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                k, v = line.split("=", 1)
                k = k.strip()
                v = v.strip().strip('"').strip("'")
                if k and (k not in os.environ or is_placeholder(os.environ.get(k))):
                    os.environ[k] = v
    finally:
        _DOTENV_LOADED = True


def _parse_config_text(text: str) -> Dict[str, Any]:
    """Parse config file contents as JSON, falling back to YAML."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError:
            data = {}
    return data if isinstance(data, dict) else {}


def _load_external_config() -> Dict[str, Any]:
    global _FILE_CACHE, _FILE_CACHE_PATH
    path = os.getenv("CHAT_RELAY_CONFIG_FILE")
    if _FILE_CACHE is not None and _FILE_CACHE_PATH == path:
        return _FILE_CACHE
    data: Dict[str, Any] = {}
    if path:
        p = Path(path).expanduser()
        if p.is_file():
            data = _parse_config_text(p.read_text(encoding="utf-8"))
    _FILE_CACHE = data
    _FILE_CACHE_PATH = path
    return data


def _env_overrides(provider: str) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    prefix = provider.upper()
    for field, suffix in ENV_FIELD_MAP.items():
        val = os.getenv(f"{prefix}_{suffix}")
        if val is not None and val.strip():
            out[field] = val.strip()
    return out


def get_provider_config(provider: str, overrides: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Return merged configuration for a provider.

    Merge order (later wins): external config file -> env vars -> overrides.
    ``None`` values in ``overrides`` never clobber lower layers.
    """
    _load_dotenv_once()
    name = (provider or "").lower().strip()
    cfg: Dict[str, Any] = {}

    file_cfg = _load_external_config().get(name)
    if isinstance(file_cfg, dict):
        cfg |= {k: v for k, v in file_cfg.items() if v is not None}

    cfg |= _env_overrides(name)

    if overrides:
        cfg |= {k: v for k, v in overrides.items() if v is not None}

    return cfg


def get_model(provider: str) -> Optional[str]:
    return get_provider_config(provider).get("model")


def reset_config_cache() -> None:
    """Forget the cached config file and ``.env`` state (tests, reloads)."""
    global _FILE_CACHE, _FILE_CACHE_PATH, _DOTENV_LOADED
    _FILE_CACHE = None
    _FILE_CACHE_PATH = None
    _DOTENV_LOADED = False


__all__ = [
    "ENV_FIELD_MAP",
    "get_provider_config",
    "get_model",
    "reset_config_cache",
]

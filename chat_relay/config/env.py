"""chat_relay.config.env
======================

Centralized environment variable mapping and helpers for provider credentials.

Purpose
-------
- Provide a single source of truth for mapping provider identifiers to their
  corresponding environment variable names (canonical and aliases).
- Offer small utilities to look up provider API keys in a consistent way.

Design Notes
------------
- Capability sets declare their own ``api_key_env_var``; ``ENV_MAP`` mirrors
  those declarations so tooling (CLI, docs) can list them without importing
  every provider module.
- Some providers (e.g., Gemini) historically support multiple env var names;
  list those in ``ENV_ALIASES`` with the canonical name first.

Failure Modes
-------------
- Functions return ``None`` when a provider is unknown or no value is present.
- Helpers never raise on missing providers or unset variables.
"""

from __future__ import annotations

import os
from typing import Dict, Iterable, Optional, Tuple

# Canonical provider -> env var mapping
ENV_MAP: Dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
    "xai": "XAI_API_KEY",
    "claude": "ANTHROPIC_API_KEY",
    "gemini": "GEMINI_API_KEY",
}


# Env var -> ordered tuple of acceptable names (canonical first)
ENV_ALIASES: Dict[str, Tuple[str, ...]] = {
    "GEMINI_API_KEY": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
}


def is_placeholder(val: Optional[str]) -> bool:
    """Return True if the provided string looks like a placeholder/test value.

    Heuristics: contains 'placeholder', 'changeme', 'example', or starts with
    'test_'. The check is case-insensitive and resilient to surrounding spaces.
    """
    if val is None:
        return False
    v = str(val).strip().lower()
    return (
        "placeholder" in v
        or "changeme" in v
        or "example" in v
        or v.startswith("test_")
    )


def get_env_var_name(provider: str) -> Optional[str]:
    """Return the canonical environment variable name for a provider."""
    return ENV_MAP.get(provider.lower()) if provider else None


def get_env_var_candidates(env_var: Optional[str]) -> Iterable[str]:
    """Yield acceptable environment variable names for a canonical variable.

    The canonical name is yielded first, followed by any aliases.
    """
    if not env_var:
        return
    yield env_var
    for alias in ENV_ALIASES.get(env_var, ()):  # pragma: no branch - small tuples
        if alias != env_var:
            yield alias


def resolve_env_key(env_var: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Resolve a credential from the process environment.

    Iterates through ``env_var`` and its aliases in priority order and returns
    the first non-empty, non-placeholder value.

    Returns
    -------
    Tuple[Optional[str], Optional[str]]
        (value, env_var_used); (None, None) when nothing usable is set.
    """
    for name in get_env_var_candidates(env_var):
        val = os.environ.get(name)
        if val and val.strip() and not is_placeholder(val):
            return val.strip(), name
    return None, None


__all__ = [
    "ENV_MAP",
    "ENV_ALIASES",
    "is_placeholder",
    "get_env_var_name",
    "get_env_var_candidates",
    "resolve_env_key",
]

"""Unified timeout configuration for request execution.

This module centralizes the timeout values enforced by the transports and the
cancellation grace period used by the execution engine.

Key Components
--------------
TimeoutConfig
    Frozen dataclass capturing normalized timeout values.

get_timeout_config()
    Returns a process-cached configuration, parsing environment overrides on
    first use and again only when one of the variables changes. Supported
    environment variables (all optional):
        CHAT_RELAY_TIMEOUT_REQUEST_SECONDS
        CHAT_RELAY_TIMEOUT_CONNECT_SECONDS
        CHAT_RELAY_CANCEL_GRACE_SECONDS

Design Constraints
------------------
1. No hard-coded ad-hoc timeouts outside this module and ``config.defaults``.
2. Avoid per-call env parsing (cache keyed on the raw env values).
3. Invalid or non-positive values fall back to defaults, never raise.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from ..config.defaults import (
    CANCEL_GRACE_SECONDS,
    CONNECT_TIMEOUT_SECONDS,
    REQUEST_TIMEOUT_SECONDS,
)

_ENV_VARS = (
    "CHAT_RELAY_TIMEOUT_REQUEST_SECONDS",
    "CHAT_RELAY_TIMEOUT_CONNECT_SECONDS",
    "CHAT_RELAY_CANCEL_GRACE_SECONDS",
)


@dataclass(frozen=True)
class TimeoutConfig:
    """Container for normalized timeout values (seconds).

    Attributes:
        request_timeout_seconds: Hard wall-clock cap for one request,
            including the whole streamed body.
        connect_timeout_seconds: Cap on connection establishment.
        cancel_grace_seconds: Delay between the cooperative termination
            request and the forced kill of a cancelled transport.
    """

    request_timeout_seconds: float = REQUEST_TIMEOUT_SECONDS
    connect_timeout_seconds: float = CONNECT_TIMEOUT_SECONDS
    cancel_grace_seconds: float = CANCEL_GRACE_SECONDS


_CACHED: Optional[TimeoutConfig] = None
_ENV_GUARD: Optional[str] = None


def _parse_env_float(name: str, default: float) -> float:
    """Read ``name`` as a positive float, returning ``default`` otherwise."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = float(raw)
    except ValueError:
        return default
    return val if val > 0 else default


def get_timeout_config() -> TimeoutConfig:
    """Return the process-cached :class:`TimeoutConfig`."""
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - documented module cache
    guard = "/".join(os.getenv(name, "") for name in _ENV_VARS)
    if _CACHED is not None and _ENV_GUARD == guard:
        return _CACHED
    _CACHED = TimeoutConfig(
        request_timeout_seconds=_parse_env_float(_ENV_VARS[0], REQUEST_TIMEOUT_SECONDS),
        connect_timeout_seconds=_parse_env_float(_ENV_VARS[1], CONNECT_TIMEOUT_SECONDS),
        cancel_grace_seconds=_parse_env_float(_ENV_VARS[2], CANCEL_GRACE_SECONDS),
    )
    _ENV_GUARD = guard
    return _CACHED


__all__ = ["TimeoutConfig", "get_timeout_config"]

"""Shared HTTP client pool for the in-process transport.

Purpose:
    Provide a centralized, thread-safe pool of reusable ``httpx.Client``
    instances to avoid per-request allocations and reduce connection
    overhead. Timeouts derive exclusively from :func:`get_timeout_config`.

External dependencies:
    - ``httpx`` for the underlying synchronous HTTP client.

Timeout strategy:
    - ``connect`` uses ``connect_timeout_seconds``; read/write/pool use
      ``request_timeout_seconds``. The transport additionally enforces the
      wall-clock request cap across the whole body.

Lifecycle & cleanup:
    - Clients are cached by a composite key of ``base_url`` and ``purpose``.
    - All clients are closed at interpreter exit via ``atexit``. Tests may
      also call :func:`close_all_clients` explicitly.
"""

from __future__ import annotations

import atexit
import threading
from typing import Dict, Optional, Tuple

import httpx

from ..logging import get_logger, log_event
from ..timeouts import get_timeout_config

# Internal cache keyed by (base_url, purpose)
_CLIENTS: Dict[Tuple[Optional[str], str], httpx.Client] = {}
_LOCK = threading.RLock()


def build_timeout() -> httpx.Timeout:
    """Return the ``httpx.Timeout`` matching the current timeout config."""
    cfg = get_timeout_config()
    return httpx.Timeout(cfg.request_timeout_seconds, connect=cfg.connect_timeout_seconds)


def get_httpx_client(base_url: Optional[str], purpose: str) -> httpx.Client:
    """Return a pooled ``httpx.Client`` for the given base URL and purpose.

    Parameters:
        base_url: Optional API base URL to associate with the client.
            ``None`` groups clients under a shared key.
        purpose: A short string discriminating separate pools (e.g.
            "stream", "buffered"). Keep stable to maximize reuse.

    Thread-safety:
        Safe for concurrent use; per-key creation is guarded by a re-entrant
        lock.
    """
    key = (base_url, purpose)
    client = _CLIENTS.get(key)
    if client is not None:
        return client

    with _LOCK:
        client = _CLIENTS.get(key)
        if client is not None:
            return client
        timeout = build_timeout()
        client = httpx.Client(base_url=base_url, timeout=timeout) if base_url else httpx.Client(timeout=timeout)
        _CLIENTS[key] = client
        return client


def close_all_clients() -> None:
    """Close and clear all pooled HTTP clients."""
    with _LOCK:
        for c in _CLIENTS.values():
            try:
                c.close()
            except Exception as exc:  # nosec B110 - shutdown path
                log_event(get_logger("chat_relay.http"), "http.close_error", error=str(exc))
        _CLIENTS.clear()


def _cleanup_at_exit() -> None:
    close_all_clients()


atexit.register(_cleanup_at_exit)

__all__ = ["build_timeout", "get_httpx_client", "close_all_clients"]

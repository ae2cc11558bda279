"""Relay session: the owned table of in-flight requests, one per sink.

Purpose
-------
Front door for callers. A :class:`RelaySession` resolves the model, builds a
fresh :class:`ExecutionEngine` per dispatch and tracks the active request of
every sink so a second dispatch on a busy sink is refused with
``REQUEST_IN_PROGRESS`` without disturbing the first.

State
-----
The active-request table is instance state guarded by a lock; nothing lives in
module globals. Entries are removed by the engine's terminal hook before the
sink's terminal callback runs, so a sink may dispatch its next request from
inside ``on_complete``.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, Mapping, Optional

from ..base.errors import ErrorCode, ProviderError
from ..base.factory import build_default_registry
from ..base.interfaces import ResponseSink, Transport
from ..base.logging import LogContext, get_logger, log_event
from ..base.models import MessageLike, RequestDescriptor
from ..base.registry import OverridesLike, ProviderRegistry
from ..base.request_builder import RequestBuilder
from ..base.streaming import ExecutionEngine, StreamContext
from ..base.timeouts import TimeoutConfig
from ..base.transport import CurlTransport


class RelaySession:
    """Dispatches requests and owns the per-sink active request table.

    Parameters
    ----------
    registry:
        Provider registry; defaults to :func:`build_default_registry` with
        ``overrides``.
    transport:
        Transport used for every request; defaults to :class:`CurlTransport`.
    overrides:
        Per-provider explicit configuration, used only when ``registry`` is
        not given.
    timeouts:
        Fixed timeout configuration; defaults to the environment-derived
        config at each dispatch.
    """

    def __init__(
        self,
        registry: Optional[ProviderRegistry] = None,
        transport: Optional[Transport] = None,
        *,
        overrides: Optional[Mapping[str, OverridesLike]] = None,
        timeouts: Optional[TimeoutConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.registry = registry if registry is not None else build_default_registry(overrides)
        self.transport: Transport = transport if transport is not None else CurlTransport()
        self.builder = RequestBuilder(self.registry)
        self.timeouts = timeouts
        self._active: Dict[int, ExecutionEngine] = {}
        self._lock = threading.Lock()
        self._logger = logger or get_logger("chat_relay.session")

    def dispatch(
        self,
        sink: ResponseSink,
        provider: str,
        messages: Iterable[MessageLike],
        *,
        model: Optional[str] = None,
        stream: bool = True,
    ) -> StreamContext:
        """Start a request for ``sink`` and return its context immediately.

        Raises
        ------
        ProviderError
            ``REQUEST_IN_PROGRESS`` when ``sink`` already has an active
            request. Every other failure reaches ``sink.on_error``.
        """
        descriptor = RequestDescriptor.create(
            provider,
            model or self._resolve_model(provider),
            messages,
            stream=stream,
        )
        key = id(sink)
        with self._lock:
            if key in self._active:
                running = self._active[key].ctx
                raise ProviderError(
                    code=ErrorCode.REQUEST_IN_PROGRESS,
                    message=f"A request is already in progress for this sink (request {running.request_id})",
                    provider=descriptor.provider,
                    model=descriptor.model,
                )
            engine = ExecutionEngine(
                self.registry,
                self.transport,
                sink,
                descriptor,
                builder=self.builder,
                timeouts=self.timeouts,
                on_terminal=lambda ctx, _key=key: self._release(_key, ctx),
            )
            self._active[key] = engine
        return engine.start()

    def _resolve_model(self, provider: str) -> str:
        # unknown providers fall through to the engine, which reports them to the sink
        if self.registry.lookup(provider) is None:
            return ""
        return self.registry.resolve_model(provider)

    def _release(self, key: int, ctx: StreamContext) -> None:
        with self._lock:
            engine = self._active.get(key)
            if engine is not None and engine.ctx is ctx:
                del self._active[key]

    def cancel(self, sink: ResponseSink) -> bool:
        """Cancel the active request of ``sink``; ``False`` when idle."""
        with self._lock:
            engine = self._active.get(id(sink))
        if engine is None:
            log_event(self._logger, "request.cancel", message="no active request", level=logging.INFO)
            return False
        return engine.cancel()

    def is_active(self, sink: ResponseSink) -> bool:
        with self._lock:
            return id(sink) in self._active

    def active_context(self, sink: ResponseSink) -> Optional[StreamContext]:
        with self._lock:
            engine = self._active.get(id(sink))
        return engine.ctx if engine is not None else None

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Cancel every in-flight request and wait up to ``timeout`` for each."""
        with self._lock:
            engines = list(self._active.values())
        for engine in engines:
            engine.cancel()
        for engine in engines:
            engine.ctx.wait(timeout)
        log_event(self._logger, "session.shutdown", LogContext(), cancelled=len(engines))


__all__ = ["RelaySession"]

"""Execution engine: one request from dispatch to its single terminal outcome.

State machine::

    IDLE -> SPAWNING -> STREAMING | BUFFERING -> COMPLETING | ERRORING | CANCELLING -> TERMINAL

Responsibilities
----------------
- Build the request, stage its body to a private temp file and spawn the
  transport. Query-string credentials are added to the URL here, right
  before spawning, and nowhere earlier.
- Strip the transport's header block (first blank line, found once), record
  the HTTP status and hand body bytes to the chunk decoder: line by line in
  streaming mode, once at transport exit in buffering mode.
- Deliver chunks to the sink in arrival order and exactly one terminal call
  after the last chunk, whichever path (success, failure, cancellation or
  engine fault) leads there.
- Release the transport handle and delete the staged body on every terminal
  path. Cleanup failures are logged, never raised.

Threading
---------
Transport callbacks arrive on the transport's I/O thread; ``cancel`` may be
called from any thread. A re-entrant lock serializes all of them, including
sink callbacks, so a sink may call ``cancel`` from inside ``on_chunk``.
"""
from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from ..errors import (
    ErrorCode,
    ProviderError,
    classify_exception,
    classify_http_status,
    classify_transport_exit,
)
from ..interfaces import CapabilitySet, ResponseSink, Transport, TransportExit, TransportRequest
from ..logging import LogContext, get_logger, log_event, normalized_log_event
from ..models import PreparedRequest, RequestDescriptor, RequestOutcome
from ..registry import ProviderRegistry
from ..request_builder import RequestBuilder
from ..timeouts import TimeoutConfig, get_timeout_config
from ..transport.staging import discard_staged, stage_body
from .chunk_decoder import decode_stream_line, decode_whole_body, payload_error
from .response_framing import parse_status_line, split_header_block
from .stream_context import StreamContext, TerminalState

TerminalCallback = Callable[[StreamContext], None]

# Longest slice of a malformed stream line echoed into logs.
_LOG_EXCERPT = 200


class EngineState(str, Enum):
    IDLE = "idle"
    SPAWNING = "spawning"
    STREAMING = "streaming"
    BUFFERING = "buffering"
    COMPLETING = "completing"
    ERRORING = "erroring"
    CANCELLING = "cancelling"
    TERMINAL = "terminal"


def with_query_param(url: str, name: str, value: str) -> str:
    """Return ``url`` with query parameter ``name`` set to ``value``."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != name]
    query.append((name, value))
    return urlunsplit(parts._replace(query=urlencode(query)))


class ExecutionEngine:
    """Runs exactly one request; create a new engine per dispatch.

    Parameters
    ----------
    registry:
        Provider registry used to build the request and resolve credentials.
    transport:
        Transport spawning the HTTP exchange.
    sink:
        Receives chunks and the terminal outcome.
    descriptor:
        The request to run (model already resolved).
    on_terminal:
        Optional hook invoked with the context after it leaves ``active`` and
        before the sink's terminal callback (the session uses it to free the
        sink's slot).
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        transport: Transport,
        sink: ResponseSink,
        descriptor: RequestDescriptor,
        *,
        builder: Optional[RequestBuilder] = None,
        timeouts: Optional[TimeoutConfig] = None,
        on_terminal: Optional[TerminalCallback] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.registry = registry
        self.transport = transport
        self.builder = builder or RequestBuilder(registry)
        self.timeouts = timeouts or get_timeout_config()
        self.ctx = StreamContext(sink=sink, descriptor=descriptor)
        self.state = EngineState.IDLE
        self._on_terminal = on_terminal
        self._lock = threading.RLock()
        self._kill_timer: Optional[threading.Timer] = None
        self._capability: Optional[CapabilitySet] = None
        self._staging_released = False
        self._logger = logger or get_logger("chat_relay.engine")
        self._log_ctx = LogContext(
            provider=descriptor.provider,
            model=descriptor.model,
            request_id=self.ctx.request_id,
        )

    # ------------------------------------------------------------------ start
    def start(self) -> StreamContext:
        """Spawn the transport and return immediately.

        Pre-spawn failures (unknown provider, missing credentials, missing
        transport) are delivered to the sink's ``on_error`` before returning.
        """
        with self._lock:
            if self.state is not EngineState.IDLE or not self.ctx.active:
                return self.ctx
            self.state = EngineState.SPAWNING
            normalized_log_event(
                self._logger,
                "request.dispatch",
                self._log_ctx,
                phase="dispatch",
                state=self.state.value,
                emitted=0,
                stream=self.ctx.stream,
                messages=len(self.ctx.descriptor.messages),
            )
            try:
                self._spawn()
            except ProviderError as err:
                self._fail(err)
            except Exception as exc:
                self._fail(
                    ProviderError(
                        code=classify_exception(exc),
                        message=f"Failed to start request: {exc}",
                        provider=self.ctx.provider,
                        model=self.ctx.model,
                    )
                )
        return self.ctx

    def _spawn(self) -> None:
        prepared = self.builder.build(self.ctx.descriptor)
        self._capability = self.registry.require(prepared.provider)
        try:
            self.ctx.staging_path = stage_body(prepared.body)
        except OSError as exc:
            raise ProviderError(
                code=ErrorCode.INTERNAL,
                message=f"Could not stage request body: {exc}",
                provider=prepared.provider,
                model=prepared.model,
            ) from exc

        request = TransportRequest(
            url=self._dispatch_url(prepared),
            headers=prepared.headers,
            body_path=self.ctx.staging_path,
            request_timeout=self.timeouts.request_timeout_seconds,
            connect_timeout=self.timeouts.connect_timeout_seconds,
            stream=prepared.stream,
        )
        try:
            handle = self.transport.spawn(request, self._on_output, self._on_exit)
        except ProviderError:
            raise
        except OSError as exc:
            raise ProviderError(
                code=ErrorCode.TRANSPORT_UNAVAILABLE,
                message=f"Could not start transport '{self.transport.name}': {exc}",
                provider=prepared.provider,
                model=prepared.model,
            ) from exc

        self.ctx.handle = handle
        if not self.ctx.active:
            # settled while spawn() ran: exited synchronously or cancelled early
            if handle.is_alive():
                try:
                    handle.terminate()
                except Exception as exc:
                    self._log_cleanup_error("terminate", exc)
            self._release_handle()
            return
        if self.state is EngineState.SPAWNING:
            self.state = EngineState.STREAMING if prepared.stream else EngineState.BUFFERING
        normalized_log_event(
            self._logger,
            "request.spawned",
            self._log_ctx,
            phase="spawn",
            state=self.state.value,
            emitted=len(self.ctx.chunks),
            endpoint=prepared.endpoint,
            transport=self.transport.name,
        )

    def _dispatch_url(self, prepared: PreparedRequest) -> str:
        capability = self._capability
        if capability is None or not capability.api_key_query_param:
            return prepared.endpoint
        api_key = self.registry.resolve_api_key(prepared.provider)
        if not api_key:
            return prepared.endpoint
        return with_query_param(prepared.endpoint, capability.api_key_query_param, api_key)

    # ----------------------------------------------------------------- output
    def _on_output(self, data: bytes) -> None:
        with self._lock:
            ctx = self.ctx
            if not data or not ctx.active or ctx.cancel_requested or ctx.fault is not None:
                return
            try:
                self._feed(data)
            except Exception as exc:
                self._abort(exc)

    def _feed(self, data: bytes, *, final: bool = False) -> None:
        ctx = self.ctx
        if not ctx.headers_done:
            ctx.header_buffer.extend(data)
            data = self._consume_headers(final=final)
            if not data:
                return
        ctx.append_body(data)
        if ctx.stream:
            ctx.line_buffer.extend(data)
            self._drain_lines(final=False)

    def _consume_headers(self, *, final: bool = False) -> bytes:
        """Split the header block off once; return body bytes seen so far.

        Interim 1xx blocks and a proxy's CONNECT 2xx block are skipped when
        another status line follows them. Until ``final`` a block that could
        still be such a preamble is held back.
        """
        ctx = self.ctx
        while True:
            split = split_header_block(bytes(ctx.header_buffer))
            if split is None:
                return b""
            header_block, rest = split
            status = parse_status_line(header_block)
            if status is not None and 100 <= status.status < 300:
                # 1xx interim or proxy "200 Connection established" before the real block
                if rest.startswith(b"HTTP/"):
                    ctx.header_buffer = bytearray(rest)
                    continue
                if not final and b"HTTP/".startswith(rest):
                    return b""
            ctx.headers_done = True
            ctx.header_buffer = bytearray(header_block)
            if status is not None:
                ctx.http_status = status.status
                ctx.http_reason = status.reason
                if status.is_error:
                    normalized_log_event(
                        self._logger,
                        "stream.http_status",
                        self._log_ctx,
                        level=logging.WARNING,
                        phase="headers",
                        state=self.state.value,
                        emitted=len(ctx.chunks),
                        http_status=status.status,
                        reason=status.reason or None,
                    )
            return rest

    def _drain_lines(self, *, final: bool) -> None:
        buf = self.ctx.line_buffer
        while True:
            nl = buf.find(b"\n")
            if nl == -1:
                break
            line = bytes(buf[:nl])
            del buf[: nl + 1]
            self._handle_line(line)
        if final and buf:
            line = bytes(buf)
            buf.clear()
            self._handle_line(line)

    def _handle_line(self, line: bytes) -> None:
        ctx = self.ctx
        if ctx.stream_error is not None or ctx.stream_ended or self._capability is None:
            return
        # a sink may cancel (or settle) the request from inside on_chunk
        if not ctx.active or ctx.cancel_requested or ctx.fault is not None:
            return
        decoded = decode_stream_line(line, self._capability)
        if decoded.malformed is not None:
            normalized_log_event(
                self._logger,
                "stream.decode_error",
                self._log_ctx,
                level=logging.WARNING,
                phase="decode",
                state=self.state.value,
                emitted=len(ctx.chunks),
                excerpt=decoded.malformed[:_LOG_EXCERPT],
            )
            return
        if decoded.sentinel:
            ctx.stream_ended = True
            return
        if decoded.error:
            ctx.stream_error = self._own(payload_error(decoded.error, self._capability))
            return
        if decoded.text:
            self._deliver(decoded.text)

    def _deliver(self, text: str) -> None:
        self.ctx.record_chunk(text)
        self.ctx.sink.on_chunk(text)

    def _abort(self, exc: Exception) -> None:
        """Engine-internal fault while handling output: stop the transport."""
        ctx = self.ctx
        ctx.fault = ProviderError(
            code=ErrorCode.INTERNAL,
            message=f"Internal error while processing response from {ctx.provider}: {exc}",
            provider=ctx.provider,
            model=ctx.model,
        )
        normalized_log_event(
            self._logger,
            "request.fault",
            self._log_ctx,
            level=logging.ERROR,
            phase="stream",
            state=self.state.value,
            error_code=ErrorCode.INTERNAL.value,
            emitted=len(ctx.chunks),
            error=str(exc),
        )
        self._stop_transport()

    # ------------------------------------------------------------------- exit
    def _on_exit(self, exit_info: TransportExit) -> None:
        with self._lock:
            if not self.ctx.active:
                return
            self._cancel_kill_timer()
            try:
                state, outcome = self._resolve_exit(exit_info)
            except ProviderError as err:
                state, outcome = TerminalState.FAILED, RequestOutcome.failed(self._own(err))
            except Exception as exc:
                state, outcome = TerminalState.FAILED, RequestOutcome.failed(
                    ProviderError(
                        code=ErrorCode.INTERNAL,
                        message=f"Internal error while finalizing response from {self.ctx.provider}: {exc}",
                        provider=self.ctx.provider,
                        model=self.ctx.model,
                    )
                )
            self._settle(state, outcome)

    def _resolve_exit(self, exit_info: TransportExit) -> Tuple[TerminalState, RequestOutcome]:
        ctx = self.ctx
        if not ctx.cancel_requested and ctx.fault is None and not ctx.headers_done:
            # a held-back 2xx block is the real one once the transport has exited
            self._feed(b"", final=True)
        if ctx.cancel_requested:
            return TerminalState.CANCELLED, RequestOutcome.cancellation()
        if ctx.fault is not None:
            raise ctx.fault
        if exit_info.returncode != 0:
            raise classify_transport_exit(
                exit_info.returncode,
                provider=ctx.provider,
                model=ctx.model,
                stderr=exit_info.stderr,
                body=bytes(ctx.body),
                signal_name=exit_info.signal_name,
            )
        if ctx.http_status is not None and ctx.http_status >= 400:
            raise classify_http_status(
                ctx.http_status,
                provider=ctx.provider,
                model=ctx.model,
                reason=ctx.http_reason,
                body=bytes(ctx.body),
                stderr=exit_info.stderr,
            )

        self.state = EngineState.COMPLETING
        if ctx.stream:
            return self._finish_stream()
        text = decode_whole_body(bytes(ctx.body), self._require_capability())
        self._deliver(text)
        return TerminalState.COMPLETED, RequestOutcome.completed(ctx.accumulated_text)

    def _finish_stream(self) -> Tuple[TerminalState, RequestOutcome]:
        ctx = self.ctx
        if ctx.stream_error is None:
            self._drain_lines(final=True)
        if ctx.stream_error is not None:
            raise ctx.stream_error
        if ctx.body_bytes == 0:
            raise ProviderError(
                code=ErrorCode.EMPTY_RESPONSE,
                message=f"Empty response body from {ctx.provider}",
                provider=ctx.provider,
                model=ctx.model,
            )
        if not ctx.chunks and not ctx.body_truncated:
            # server ignored the stream flag and answered with a whole document
            try:
                text = decode_whole_body(bytes(ctx.body), self._require_capability(), placeholder=False)
            except ProviderError as err:
                if err.code is not ErrorCode.MALFORMED_PAYLOAD:
                    raise
            else:
                if text:
                    self._deliver(text)
        return TerminalState.COMPLETED, RequestOutcome.completed(ctx.accumulated_text)

    def _require_capability(self) -> CapabilitySet:
        if self._capability is None:
            self._capability = self.registry.require(self.ctx.provider)
        return self._capability

    def _own(self, err: ProviderError) -> ProviderError:
        if not err.provider:
            err.provider = self.ctx.provider
        if err.model is None:
            err.model = self.ctx.model
        return err

    # ----------------------------------------------------------------- cancel
    def cancel(self) -> bool:
        """Start cancellation; ``False`` if the request already finished.

        Cooperative termination is requested immediately and a forced kill is
        scheduled after the grace period. The ``on_cancelled`` terminal fires
        once the transport reports its exit.
        """
        with self._lock:
            ctx = self.ctx
            if not ctx.active:
                return False
            if ctx.cancel_requested:
                return True
            ctx.cancel_requested = True
            self.state = EngineState.CANCELLING
            normalized_log_event(
                self._logger,
                "request.cancel",
                self._log_ctx,
                phase="cancel",
                state=self.state.value,
                emitted=len(ctx.chunks),
            )
            if ctx.handle is None:
                self._settle(TerminalState.CANCELLED, RequestOutcome.cancellation())
                return True
            self._stop_transport()
            return True

    def _stop_transport(self) -> None:
        handle = self.ctx.handle
        if handle is None:
            return
        try:
            handle.terminate()
        except Exception as exc:
            self._log_cleanup_error("terminate", exc)
        if self._kill_timer is None and self.ctx.active:
            timer = threading.Timer(self.timeouts.cancel_grace_seconds, self._force_kill)
            timer.daemon = True
            self._kill_timer = timer
            timer.start()

    def _force_kill(self) -> None:
        with self._lock:
            handle = self.ctx.handle
            if handle is None or not self.ctx.active:
                return
            try:
                if handle.is_alive():
                    handle.kill()
                    log_event(self._logger, "request.kill", self._log_ctx, grace=self.timeouts.cancel_grace_seconds)
            except Exception as exc:
                self._log_cleanup_error("kill", exc)

    def _cancel_kill_timer(self) -> None:
        timer, self._kill_timer = self._kill_timer, None
        if timer is not None:
            timer.cancel()

    # --------------------------------------------------------------- terminal
    def _fail(self, err: ProviderError) -> None:
        self.state = EngineState.ERRORING
        self._settle(TerminalState.FAILED, RequestOutcome.failed(self._own(err)))

    def _settle(self, state: TerminalState, outcome: RequestOutcome) -> None:
        ctx = self.ctx
        if not ctx.active:
            return
        if state is TerminalState.FAILED:
            self.state = EngineState.ERRORING
        ctx.settle(state, outcome)
        try:
            self._cleanup()
            self._log_terminal(state, outcome)
            if self._on_terminal is not None:
                try:
                    self._on_terminal(ctx)
                except Exception as exc:
                    self._log_cleanup_error("on_terminal", exc)
            self._notify_sink(outcome)
        finally:
            self.state = EngineState.TERMINAL
            ctx.mark_done()

    def _notify_sink(self, outcome: RequestOutcome) -> None:
        sink = self.ctx.sink
        try:
            if outcome.cancelled:
                sink.on_cancelled()
            elif outcome.error is not None:
                sink.on_error(outcome.error.message)
            else:
                sink.on_complete(outcome.text or "")
        except Exception as exc:
            log_event(
                self._logger,
                "request.sink_error",
                self._log_ctx,
                level=logging.ERROR,
                error=str(exc),
                error_type=type(exc).__name__,
            )

    def _log_terminal(self, state: TerminalState, outcome: RequestOutcome) -> None:
        ctx = self.ctx
        common = dict(phase="finalize", state=state.value, emitted=len(ctx.chunks), http_status=ctx.http_status)
        if state is TerminalState.COMPLETED:
            normalized_log_event(self._logger, "request.complete", self._log_ctx, chars=len(outcome.text or ""), **common)
        elif state is TerminalState.CANCELLED:
            normalized_log_event(self._logger, "request.cancelled", self._log_ctx, **common)
        else:
            err = outcome.error
            normalized_log_event(
                self._logger,
                "request.error",
                self._log_ctx,
                level=logging.WARNING,
                error_code=err.code.value if err is not None else None,
                error=err.message if err is not None else None,
                **common,
            )

    def _cleanup(self) -> None:
        self._cancel_kill_timer()
        self._release_handle()
        if not self._staging_released and self.ctx.staging_path:
            self._staging_released = True
            try:
                discard_staged(self.ctx.staging_path)
            except OSError as exc:
                self._log_cleanup_error("staging", exc)

    def _release_handle(self) -> None:
        handle = self.ctx.handle
        if handle is None:
            return
        try:
            handle.release()
        except Exception as exc:
            self._log_cleanup_error("transport", exc)

    def _log_cleanup_error(self, resource: str, exc: BaseException) -> None:
        normalized_log_event(
            self._logger,
            "request.cleanup_error",
            self._log_ctx,
            level=logging.WARNING,
            phase="cleanup",
            state=self.state.value,
            emitted=len(self.ctx.chunks),
            resource=resource,
            error=str(exc),
        )


__all__ = ["EngineState", "ExecutionEngine", "TerminalCallback", "with_query_param"]

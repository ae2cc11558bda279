"""Per-request execution state.

A :class:`StreamContext` is created for every dispatch, owned by exactly one
:class:`~chat_relay.base.streaming.engine.ExecutionEngine` and discarded after
its terminal callback has run. It is never reused across requests.
"""
from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..errors import ErrorCode, ProviderError
from ..interfaces import ResponseSink, TransportHandle
from ..models import RequestDescriptor, RequestOutcome

# Body bytes retained in streaming mode for error extraction.
DIAGNOSTIC_BODY_LIMIT = 64 * 1024


class TerminalState(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(eq=False)
class StreamContext:
    """Mutable state of one in-flight request.

    Attributes:
        sink: Destination of chunks and the terminal outcome.
        descriptor: What was requested.
        request_id: Correlation id used in log events.
        chunks: Every delivered chunk, in delivery order.
        handle: The running transport, once spawned.
        terminal_state: ``ACTIVE`` until the single terminal transition.
        outcome: Set together with ``terminal_state``.
        staging_path: Temp file holding the request body, if staged.
        header_buffer: Bytes received before the header/body separator.
        headers_done: Whether the separator has been found.
        http_status: Status parsed from the header block, if any.
        http_reason: Reason phrase of that status.
        line_buffer: Streaming mode: bytes of the current partial line.
        body: Body bytes (whole body when buffering; capped when streaming).
        body_bytes: Total body bytes received.
        stream_error: Payload error detected mid-stream.
        stream_ended: End-of-stream marker seen; later lines are ignored.
        fault: Engine-internal failure that forced termination.
        cancel_requested: Set once cancellation starts.
    """

    sink: ResponseSink
    descriptor: RequestDescriptor
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    chunks: List[str] = field(default_factory=list)
    handle: Optional[TransportHandle] = None
    terminal_state: TerminalState = TerminalState.ACTIVE
    outcome: Optional[RequestOutcome] = None
    staging_path: Optional[str] = None

    header_buffer: bytearray = field(default_factory=bytearray)
    headers_done: bool = False
    http_status: Optional[int] = None
    http_reason: str = ""
    line_buffer: bytearray = field(default_factory=bytearray)
    body: bytearray = field(default_factory=bytearray)
    body_bytes: int = 0
    stream_error: Optional[ProviderError] = None
    stream_ended: bool = False
    fault: Optional[ProviderError] = None
    cancel_requested: bool = False

    _done: threading.Event = field(default_factory=threading.Event, repr=False)

    # ----- views -----
    @property
    def provider(self) -> str:
        return self.descriptor.provider

    @property
    def model(self) -> str:
        return self.descriptor.model

    @property
    def stream(self) -> bool:
        return self.descriptor.stream

    @property
    def accumulated_text(self) -> str:
        return "".join(self.chunks)

    @property
    def active(self) -> bool:
        return self.terminal_state is TerminalState.ACTIVE

    @property
    def body_truncated(self) -> bool:
        return self.body_bytes > len(self.body)

    # ----- mutation (engine only) -----
    def append_body(self, data: bytes) -> None:
        self.body_bytes += len(data)
        if not self.stream:
            self.body.extend(data)
            return
        room = DIAGNOSTIC_BODY_LIMIT - len(self.body)
        if room > 0:
            self.body.extend(data[:room])

    def record_chunk(self, text: str) -> None:
        self.chunks.append(text)

    def settle(self, state: TerminalState, outcome: RequestOutcome) -> None:
        """Leave ``ACTIVE`` exactly once; later calls are rejected."""
        if self.terminal_state is not TerminalState.ACTIVE:
            raise ProviderError(
                code=ErrorCode.INTERNAL,
                message=f"request {self.request_id} already {self.terminal_state.value}",
                provider=self.provider,
                model=self.model,
            )
        self.terminal_state = state
        self.outcome = outcome

    def mark_done(self) -> None:
        self._done.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the terminal callback has run (tests, CLI)."""
        return self._done.wait(timeout)


__all__ = ["StreamContext", "TerminalState", "DIAGNOSTIC_BODY_LIMIT"]

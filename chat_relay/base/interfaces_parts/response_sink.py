"""ResponseSink Protocol (single-class module).

The destination of a request's output, implemented by the UI layer (or the
ready-made sinks in ``chat_relay.service.sinks``).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ResponseSink(Protocol):
    """Receives zero or more ordered chunks, then exactly one terminal call.

    Callbacks run on the transport's I/O thread, never on the dispatching
    caller's stack (pre-spawn failures excepted).
    """

    def on_chunk(self, text: str) -> None:
        """Receive the next non-empty text chunk."""
        ...

    def on_complete(self, full_text: str) -> None:
        """Receive the concatenation of every delivered chunk."""
        ...

    def on_error(self, message: str) -> None:
        """Receive the single human-readable failure message."""
        ...

    def on_cancelled(self) -> None:
        """Acknowledge that the request was cancelled."""
        ...


__all__ = ["ResponseSink"]

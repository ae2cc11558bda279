"""Ready-made response sinks.

- :class:`CollectingSink` records chunks and the terminal outcome and lets a
  caller block until the request ends (tests, scripts).
- :class:`StreamWriterSink` writes chunks to a text stream as they arrive
  (the CLI).
"""

from __future__ import annotations

import sys
import threading
from typing import List, Optional, TextIO


class CollectingSink:
    """Sink that stores everything it receives.

    ``terminal_calls`` counts terminal callbacks so tests can assert the
    exactly-once guarantee directly.
    """

    def __init__(self) -> None:
        self.chunks: List[str] = []
        self.full_text: Optional[str] = None
        self.error: Optional[str] = None
        self.cancelled = False
        self.terminal_calls = 0
        self.events: List[str] = []
        self._done = threading.Event()

    def on_chunk(self, text: str) -> None:
        self.chunks.append(text)
        self.events.append("chunk")

    def on_complete(self, full_text: str) -> None:
        self.full_text = full_text
        self._terminal("complete")

    def on_error(self, message: str) -> None:
        self.error = message
        self._terminal("error")

    def on_cancelled(self) -> None:
        self.cancelled = True
        self._terminal("cancelled")

    def _terminal(self, name: str) -> None:
        self.terminal_calls += 1
        self.events.append(name)
        self._done.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until a terminal callback arrives; ``False`` on timeout."""
        return self._done.wait(timeout)

    @property
    def done(self) -> bool:
        return self._done.is_set()


class StreamWriterSink:
    """Sink writing chunks straight to ``stream`` (default ``sys.stdout``).

    Errors go to ``error_stream`` (default ``sys.stderr``). When
    ``echo_complete`` is set, the full text is written once on completion
    instead of chunk by chunk (buffered requests).
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        error_stream: Optional[TextIO] = None,
        *,
        echo_complete: bool = False,
    ) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.error_stream = error_stream if error_stream is not None else sys.stderr
        self.echo_complete = echo_complete
        self.exit_code: Optional[int] = None
        self._done = threading.Event()

    def on_chunk(self, text: str) -> None:
        if self.echo_complete:
            return
        self.stream.write(text)
        self.stream.flush()

    def on_complete(self, full_text: str) -> None:
        if self.echo_complete:
            self.stream.write(full_text)
        self.stream.write("\n")
        self.stream.flush()
        self._finish(0)

    def on_error(self, message: str) -> None:
        self.error_stream.write(f"error: {message}\n")
        self.error_stream.flush()
        self._finish(1)

    def on_cancelled(self) -> None:
        self.error_stream.write("cancelled\n")
        self.error_stream.flush()
        self._finish(130)

    def _finish(self, code: int) -> None:
        self.exit_code = code
        self._done.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)


__all__ = ["CollectingSink", "StreamWriterSink"]

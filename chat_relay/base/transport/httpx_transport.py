"""In-process transport on pooled ``httpx`` clients.

Performs the exchange on a worker thread and reports it exactly like the curl
transport: a synthesized ``HTTP/x status reason`` header block, a blank line,
then body bytes as they arrive, followed by one exit notification. httpx
exceptions are mapped onto curl's exit-code numbering so the error classifier
treats both transports alike.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Optional

import httpx

from ..http import get_httpx_client
from ..interfaces import ExitCallback, OutputCallback, TransportExit, TransportRequest
from ..logging import get_logger, log_event

# curl exit codes reused for in-process failures
EXIT_DNS = 6
EXIT_CONNECT = 7
EXIT_TIMEOUT = 28
EXIT_TLS = 35
EXIT_EMPTY = 52
EXIT_RECV = 56
EXIT_CERT = 60
EXIT_READ_FILE = 26
EXIT_GENERIC = 1
# reported for a cancelled exchange, like a SIGTERM'd process
EXIT_TERMINATED = -15

_DNS_MARKERS = ("name or service not known", "nodename nor servname", "getaddrinfo", "name resolution")


def exit_code_for(exc: BaseException) -> int:
    """Map an httpx (or I/O) exception onto curl's exit-code table."""
    text = str(exc).lower()
    if isinstance(exc, httpx.TimeoutException):
        return EXIT_TIMEOUT
    if isinstance(exc, httpx.ConnectError):
        if any(marker in text for marker in _DNS_MARKERS):
            return EXIT_DNS
        if "certificate" in text:
            return EXIT_CERT
        if "ssl" in text or "tls" in text:
            return EXIT_TLS
        return EXIT_CONNECT
    if isinstance(exc, httpx.RemoteProtocolError):
        return EXIT_EMPTY if "without sending" in text else EXIT_RECV
    if isinstance(exc, httpx.TransportError):
        return EXIT_RECV
    if isinstance(exc, OSError):
        return EXIT_READ_FILE
    return EXIT_GENERIC


def header_block(response: httpx.Response) -> bytes:
    """Render the status line and headers the way ``curl --include`` does."""
    reason = response.reason_phrase or ""
    lines = [f"{response.http_version} {response.status_code} {reason}".rstrip()]
    lines.extend(f"{name}: {value}" for name, value in response.headers.multi_items())
    return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1", errors="replace")


class HttpxHandle:
    """Handle over one in-process exchange."""

    def __init__(self) -> None:
        self.thread: Optional[threading.Thread] = None
        self.cancelled = threading.Event()
        self._response: Optional[httpx.Response] = None
        self._lock = threading.Lock()

    def attach(self, response: httpx.Response) -> None:
        with self._lock:
            self._response = response

    def terminate(self) -> None:
        self.cancelled.set()
        self._close_response()

    def kill(self) -> None:
        self.terminate()

    def is_alive(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def release(self) -> None:
        self._close_response()

    def _close_response(self) -> None:
        with self._lock:
            response, self._response = self._response, None
        if response is not None:
            response.close()


class HttpxTransport:
    """Transport running each exchange on a worker thread with ``httpx``.

    Parameters
    ----------
    client:
        Client to use; defaults to the pooled client from
        :func:`~chat_relay.base.http.get_httpx_client`. Tests pass a client
        built on ``httpx.MockTransport``.
    """

    name = "httpx"

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        *,
        purpose: str = "relay",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self.purpose = purpose
        self._logger = logger or get_logger("chat_relay.transport.httpx")

    @property
    def client(self) -> httpx.Client:
        return self._client if self._client is not None else get_httpx_client(None, self.purpose)

    def spawn(self, request: TransportRequest, on_output: OutputCallback, on_exit: ExitCallback) -> HttpxHandle:
        handle = HttpxHandle()
        thread = threading.Thread(
            target=self._run,
            args=(request, on_output, on_exit, handle),
            name="chat-relay-httpx",
            daemon=True,
        )
        handle.thread = thread
        thread.start()
        return handle

    def _run(self, request: TransportRequest, on_output: OutputCallback, on_exit: ExitCallback, handle: HttpxHandle) -> None:
        returncode, stderr = 0, ""
        try:
            returncode, stderr = self._exchange(request, on_output, handle)
        except Exception as exc:  # reported through the exit notification
            if not handle.cancelled.is_set():
                returncode = exit_code_for(exc)
                stderr = f"{type(exc).__name__}: {exc}"
                log_event(self._logger, "transport.error", level=logging.DEBUG, error=stderr, exit=returncode)
        if handle.cancelled.is_set():
            on_exit(TransportExit(returncode=EXIT_TERMINATED, stderr="", signal_name="SIGTERM"))
            return
        on_exit(TransportExit(returncode=returncode, stderr=stderr))

    def _exchange(self, request: TransportRequest, on_output: OutputCallback, handle: HttpxHandle) -> tuple:
        with open(request.body_path, "rb") as fh:
            body = fh.read()
        deadline = time.monotonic() + request.request_timeout
        timeout = httpx.Timeout(request.request_timeout, connect=request.connect_timeout)
        with self.client.stream(
            "POST",
            request.url,
            headers=list(request.headers),
            content=body,
            timeout=timeout,
        ) as response:
            handle.attach(response)
            on_output(header_block(response))
            for chunk in response.iter_bytes():
                if handle.cancelled.is_set():
                    break
                if time.monotonic() > deadline:
                    return EXIT_TIMEOUT, f"Operation timed out after {request.request_timeout:g} seconds"
                if chunk:
                    on_output(chunk)
        return 0, ""


__all__ = ["HttpxTransport", "HttpxHandle", "exit_code_for", "header_block", "EXIT_TERMINATED"]

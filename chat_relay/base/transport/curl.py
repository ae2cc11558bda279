"""curl subprocess transport.

Runs the system ``curl`` binary once per request:

- ``--include`` so the header block precedes the body on stdout;
- ``--no-buffer`` so streamed bytes arrive as the server sends them;
- ``--data-binary @<staged file>`` so the body never appears in argv;
- URL and headers are written to curl's stdin as a ``--config -`` file so
  credentials never appear in argv either;
- ``--max-time``/``--connect-timeout`` enforce the request timeouts.

stdout is read on a reader thread and handed to ``on_output`` as it
arrives; stderr is drained on a second thread and reported with the exit
status. ``on_exit`` is invoked exactly once, from the reader thread, after
the last ``on_output`` call.
"""
from __future__ import annotations

import logging
import os
import shutil
import signal
import subprocess  # nosec B404 - invoking the trusted local curl binary (fixed arg list)
import threading
from contextlib import suppress
from typing import IO, List, Optional, Sequence

from ...config.defaults import CURL_EXECUTABLE
from ..errors import ErrorCode, ProviderError
from ..interfaces import ExitCallback, OutputCallback, TransportExit, TransportRequest
from ..logging import get_logger, log_event

READ_SIZE = 4096


def _format_seconds(value: float) -> str:
    return f"{value:g}"


def _quote_config(value: str) -> str:
    """Quote a value for curl's config-file syntax."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def signal_name_for(returncode: int) -> Optional[str]:
    """Return the signal name for a negative ``Popen`` return code."""
    if returncode >= 0:
        return None
    try:
        return signal.Signals(-returncode).name
    except ValueError:
        return f"signal {-returncode}"


class CurlProcessHandle:
    """Handle over one running curl process."""

    def __init__(self, process: subprocess.Popen, stderr_thread: threading.Thread) -> None:
        self.process = process
        self._stderr_thread = stderr_thread
        self._released = False

    def terminate(self) -> None:
        if self.process.poll() is None:
            with suppress(ProcessLookupError):
                self.process.terminate()

    def kill(self) -> None:
        if self.process.poll() is None:
            with suppress(ProcessLookupError):
                self.process.kill()

    def is_alive(self) -> bool:
        return self.process.poll() is None

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        if self._stderr_thread is not threading.current_thread():
            self._stderr_thread.join(timeout=1.0)
        for stream in (self.process.stdin, self.process.stdout, self.process.stderr):
            if stream is not None:
                stream.close()


class CurlTransport:
    """Transport spawning one ``curl`` process per request."""

    name = "curl"

    def __init__(
        self,
        executable: str = CURL_EXECUTABLE,
        *,
        extra_args: Sequence[str] = (),
        read_size: int = READ_SIZE,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.executable = executable
        self.extra_args = tuple(extra_args)
        self.read_size = read_size
        self._logger = logger or get_logger("chat_relay.transport.curl")

    # ----- command construction -----
    def resolve_executable(self) -> str:
        """Return the absolute path of curl or raise ``TRANSPORT_UNAVAILABLE``."""
        exe_path = shutil.which(self.executable)
        if not exe_path:
            raise ProviderError(
                code=ErrorCode.TRANSPORT_UNAVAILABLE,
                message=f"'{self.executable}' executable not found on PATH",
                provider="",
            )
        return os.path.abspath(exe_path)

    def build_command(self, executable: str, request: TransportRequest) -> List[str]:
        """Return the argument vector (no URL, headers or body content)."""
        return [
            executable,
            "--silent",
            "--show-error",
            "--no-buffer",
            "--include",
            "--suppress-connect-headers",
            "--request",
            "POST",
            "--max-time",
            _format_seconds(request.request_timeout),
            "--connect-timeout",
            _format_seconds(request.connect_timeout),
            "--data-binary",
            f"@{request.body_path}",
            *self.extra_args,
            "--config",
            "-",
        ]

    def build_config(self, request: TransportRequest) -> str:
        """Return the config text written to curl's stdin."""
        lines = [f"url = {_quote_config(request.url)}"]
        # suppress "Expect: 100-continue" for large bodies
        lines.append(f"header = {_quote_config('Expect:')}")
        for name, value in request.headers:
            lines.append(f"header = {_quote_config(f'{name}: {value}')}")
        return "\n".join(lines) + "\n"

    # ----- execution -----
    def spawn(self, request: TransportRequest, on_output: OutputCallback, on_exit: ExitCallback) -> CurlProcessHandle:
        cmd = self.build_command(self.resolve_executable(), request)
        process = subprocess.Popen(  # nosec B603 - fixed arg list; shell=False
            cmd,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            bufsize=0,
        )
        stderr_chunks: List[bytes] = []
        stderr_thread = threading.Thread(
            target=self._drain_stderr,
            args=(process.stderr, stderr_chunks),
            name="chat-relay-curl-stderr",
            daemon=True,
        )
        stderr_thread.start()
        handle = CurlProcessHandle(process, stderr_thread)
        self._write_config(process, request)
        reader = threading.Thread(
            target=self._pump,
            args=(process, on_output, on_exit, stderr_chunks, stderr_thread),
            name="chat-relay-curl-reader",
            daemon=True,
        )
        reader.start()
        return handle

    def _write_config(self, process: subprocess.Popen, request: TransportRequest) -> None:
        stdin = process.stdin
        if stdin is None:
            return
        pending = memoryview(self.build_config(request).encode("utf-8"))
        try:
            while pending:
                written = stdin.write(pending)
                if not written:
                    break
                pending = pending[written:]
        except OSError as exc:
            # curl exited early; the reader reports its status
            log_event(self._logger, "transport.stdin_error", level=logging.DEBUG, error=str(exc))
        finally:
            with suppress(OSError):
                stdin.close()

    @staticmethod
    def _drain_stderr(stream: Optional[IO[bytes]], sink: List[bytes]) -> None:
        if stream is None:
            return
        with suppress(OSError, ValueError):
            for chunk in iter(lambda: stream.read(READ_SIZE), b""):
                sink.append(chunk)

    def _pump(
        self,
        process: subprocess.Popen,
        on_output: OutputCallback,
        on_exit: ExitCallback,
        stderr_chunks: List[bytes],
        stderr_thread: threading.Thread,
    ) -> None:
        stdout = process.stdout
        try:
            while stdout is not None:
                data = stdout.read(self.read_size)
                if not data:
                    break
                on_output(data)
        except (OSError, ValueError) as exc:
            log_event(self._logger, "transport.read_error", level=logging.WARNING, error=str(exc))
        returncode = process.wait()
        stderr_thread.join(timeout=5.0)
        stderr = b"".join(stderr_chunks).decode("utf-8", errors="replace").strip()
        on_exit(TransportExit(returncode=returncode, stderr=stderr, signal_name=signal_name_for(returncode)))


__all__ = ["CurlTransport", "CurlProcessHandle", "signal_name_for", "READ_SIZE"]

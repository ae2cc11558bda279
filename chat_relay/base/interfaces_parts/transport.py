"""Transport Protocols and value types.

A transport performs the actual HTTP exchange for one request, either in an
external process (curl) or in-process (httpx). Whatever the mechanism, it
reports the raw response as a header block followed by body bytes, then a
single exit notification, all from one I/O thread per request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Tuple, runtime_checkable

from ..models import Header


@dataclass(frozen=True)
class TransportRequest:
    """Everything a transport needs to perform one exchange.

    ``body_path`` points at the staged request body; transports read it from
    disk so neither argument lists nor logs ever carry the body.
    """

    url: str
    headers: Tuple[Header, ...]
    body_path: str
    request_timeout: float
    connect_timeout: float
    stream: bool = True


@dataclass(frozen=True)
class TransportExit:
    """Exit notification: status, captured diagnostics, terminating signal."""

    returncode: int
    stderr: str = ""
    signal_name: Optional[str] = None


OutputCallback = Callable[[bytes], None]
ExitCallback = Callable[[TransportExit], None]


@runtime_checkable
class TransportHandle(Protocol):
    """Ownership of one running exchange."""

    def terminate(self) -> None:
        """Request cooperative termination."""
        ...

    def kill(self) -> None:
        """Force termination."""
        ...

    def is_alive(self) -> bool:
        ...

    def release(self) -> None:
        """Close pipes/connections once the exchange has ended."""
        ...


@runtime_checkable
class Transport(Protocol):
    """Factory for running exchanges."""

    name: str

    def spawn(
        self,
        request: TransportRequest,
        on_output: OutputCallback,
        on_exit: ExitCallback,
    ) -> TransportHandle:
        """Start the exchange; raise ``TRANSPORT_UNAVAILABLE`` if impossible."""
        ...


__all__ = [
    "TransportRequest",
    "TransportExit",
    "OutputCallback",
    "ExitCallback",
    "TransportHandle",
    "Transport",
]

"""Transports performing the HTTP exchange for one request."""

from .staging import discard_staged, stage_body
from .curl import CurlProcessHandle, CurlTransport
from .httpx_transport import HttpxHandle, HttpxTransport, exit_code_for

TRANSPORTS = {
    CurlTransport.name: CurlTransport,
    HttpxTransport.name: HttpxTransport,
}


def create_transport(name: str):
    """Instantiate a transport by name (``curl`` or ``httpx``)."""
    try:
        return TRANSPORTS[(name or "").strip().lower()]()
    except KeyError:
        raise ValueError(f"Unknown transport '{name}' (choose from {', '.join(TRANSPORTS)})") from None


__all__ = [
    "stage_body",
    "discard_staged",
    "CurlTransport",
    "CurlProcessHandle",
    "HttpxTransport",
    "HttpxHandle",
    "exit_code_for",
    "TRANSPORTS",
    "create_transport",
]

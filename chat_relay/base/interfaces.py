"""
Provider-agnostic interfaces (ABCs/Protocols) for the relay core.

Re-exports the contracts split into single-class modules under
``chat_relay.base.interfaces_parts``.
"""

from __future__ import annotations

from .interfaces_parts import (
    CapabilitySet,
    ExitCallback,
    JSON_CONTENT_TYPE,
    OutputCallback,
    ResponseSink,
    StreamFraming,
    Transport,
    TransportExit,
    TransportHandle,
    TransportRequest,
    encode_json,
)

__all__ = [
    "CapabilitySet",
    "StreamFraming",
    "JSON_CONTENT_TYPE",
    "encode_json",
    "ResponseSink",
    "Transport",
    "TransportHandle",
    "TransportRequest",
    "TransportExit",
    "OutputCallback",
    "ExitCallback",
]

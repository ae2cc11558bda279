"""Interfaces split into single-class modules.

One contract per file; ``chat_relay.base.interfaces`` re-exports a stable API.
"""

from .capability_set import CapabilitySet, StreamFraming, JSON_CONTENT_TYPE, encode_json
from .response_sink import ResponseSink
from .transport import (
    ExitCallback,
    OutputCallback,
    Transport,
    TransportExit,
    TransportHandle,
    TransportRequest,
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

"""Streaming package: per-request execution for the relay core.

Exposes the stream context, response framing helpers, chunk decoder and the
execution engine under a single namespace.
"""

from .stream_context import DIAGNOSTIC_BODY_LIMIT, StreamContext, TerminalState
from .response_framing import StatusLine, find_header_end, parse_status_line, split_header_block
from .chunk_decoder import (
    DATA_PREFIX,
    DecodedLine,
    decode_stream_line,
    decode_whole_body,
    extract_common_text,
    no_text_placeholder,
    payload_error,
)
from .engine import EngineState, ExecutionEngine, TerminalCallback, with_query_param

__all__ = [
    "DIAGNOSTIC_BODY_LIMIT",
    "StreamContext",
    "TerminalState",
    "StatusLine",
    "find_header_end",
    "parse_status_line",
    "split_header_block",
    "DATA_PREFIX",
    "DecodedLine",
    "decode_stream_line",
    "decode_whole_body",
    "extract_common_text",
    "no_text_placeholder",
    "payload_error",
    "EngineState",
    "ExecutionEngine",
    "TerminalCallback",
    "with_query_param",
]

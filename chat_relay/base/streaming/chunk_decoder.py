"""Chunk decoder: body bytes to text.

Two entry points:

- :func:`decode_stream_line` handles one complete line of a streamed body.
  SSE providers mark payload lines with ``data:``; ``event:``/``id:``/
  ``retry:`` annotations and ``:`` comments are skipped. NDJSON providers
  put one whole JSON document on each line. A line that fails to parse is
  reported as ``malformed`` and never aborts the stream.
- :func:`decode_whole_body` parses a buffered body once. The capability's
  error parser runs first; a yielded message makes the whole request a
  failure.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional, Union

from ..errors import ErrorCode, ProviderError
from ..interfaces import CapabilitySet

DATA_PREFIX = "data:"
_ANNOTATION_PREFIXES = ("event:", "id:", "retry:", ":")

LineLike = Union[bytes, bytearray, str]


@dataclass(frozen=True)
class DecodedLine:
    """Result of decoding one stream line.

    At most one of ``text``, ``error`` and ``malformed`` is set. All three
    unset means the line carried nothing to deliver (blank, annotation,
    sentinel or an event without a delta).
    """

    text: Optional[str] = None
    error: Optional[str] = None
    malformed: Optional[str] = None
    sentinel: bool = False


_SKIP = DecodedLine()


def _as_text(line: LineLike) -> str:
    if isinstance(line, (bytes, bytearray)):
        return bytes(line).decode("utf-8", errors="replace")
    return line


def _payload_of(line: str, capability: CapabilitySet) -> Optional[str]:
    """Return the JSON payload carried by ``line`` or ``None`` to skip it."""
    if capability.stream_framing == "ndjson":
        return line
    if line.startswith(DATA_PREFIX):
        return line[len(DATA_PREFIX):].strip()
    # annotations and anything else that is not a data line
    return None


def decode_stream_line(line: LineLike, capability: CapabilitySet) -> DecodedLine:
    """Decode one complete stream line for ``capability``."""
    text = _as_text(line).strip()
    if not text:
        return _SKIP
    if capability.stream_framing == "sse" and text.startswith(_ANNOTATION_PREFIXES):
        return _SKIP
    payload = _payload_of(text, capability)
    if not payload:
        return _SKIP
    if capability.is_stream_sentinel(payload):
        return DecodedLine(sentinel=True)
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        return DecodedLine(malformed=payload)
    error = capability.parse_error(data)
    if error:
        return DecodedLine(error=error)
    delta = capability.parse_stream_event(data)
    if delta:
        return DecodedLine(text=delta)
    return _SKIP


_COMMON_TEXT_KEYS = ("text", "content", "output", "response", "completion")


def extract_common_text(payload: Any) -> Optional[str]:
    """Best-effort text extraction from common response field names."""
    if isinstance(payload, str):
        return payload or None
    if isinstance(payload, list):
        parts = [t for t in (extract_common_text(p) for p in payload) if t]
        return "".join(parts) if parts else None
    if not isinstance(payload, dict):
        return None
    for key in _COMMON_TEXT_KEYS:
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
        if isinstance(value, list):
            found = extract_common_text(value)
            if found:
                return found
    message = payload.get("message")
    if isinstance(message, dict):
        return extract_common_text(message)
    choices = payload.get("choices")
    if isinstance(choices, list) and choices:
        return extract_common_text(choices[0])
    return None


def no_text_placeholder(provider: str) -> str:
    """Diagnostic text delivered when a response parses but carries no text."""
    return f"[{provider}: response contained no text content]"


def _parse_ndjson(text: str) -> Optional[list]:
    docs = []
    for raw in text.splitlines():
        raw = raw.strip()
        if not raw:
            continue
        try:
            docs.append(json.loads(raw))
        except json.JSONDecodeError:
            return None
    return docs or None


def payload_error(message: str, capability: CapabilitySet) -> ProviderError:
    return ProviderError(
        code=ErrorCode.PROVIDER_ERROR,
        message=f"Provider error from {capability.name}: {message}",
        provider=capability.name,
    )


def decode_whole_body(body: LineLike, capability: CapabilitySet, *, placeholder: bool = True) -> str:
    """Parse a complete buffered body and return its text.

    A body that parses but carries no text yields the diagnostic placeholder,
    or an empty string when ``placeholder`` is false.

    Raises
    ------
    ProviderError
        ``EMPTY_RESPONSE`` for a blank body, ``MALFORMED_PAYLOAD`` when the
        body is not JSON, ``PROVIDER_ERROR`` when the error parser yields a
        message.
    """
    text = _as_text(body).strip()
    if not text:
        raise ProviderError(
            code=ErrorCode.EMPTY_RESPONSE,
            message=f"Empty response body from {capability.name}",
            provider=capability.name,
        )
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        # an NDJSON server may stream even when asked not to
        docs = _parse_ndjson(text) if capability.stream_framing == "ndjson" else None
        if docs is None:
            raise ProviderError(
                code=ErrorCode.MALFORMED_PAYLOAD,
                message=f"Malformed response from {capability.name}: {exc.msg} at position {exc.pos}",
                provider=capability.name,
            ) from exc
        result = _join_documents(docs, capability)
        return result or (no_text_placeholder(capability.name) if placeholder else "")

    error = capability.parse_error(data)
    if error:
        raise payload_error(error, capability)
    result = capability.parse_response(data)
    if result is None:
        result = extract_common_text(data)
    if result:
        return result
    return no_text_placeholder(capability.name) if placeholder else ""


def _join_documents(docs: list, capability: CapabilitySet) -> str:
    parts = []
    for doc in docs:
        error = capability.parse_error(doc)
        if error:
            raise payload_error(error, capability)
        delta = capability.parse_stream_event(doc)
        if delta:
            parts.append(delta)
    return "".join(parts)


__all__ = [
    "DATA_PREFIX",
    "DecodedLine",
    "decode_stream_line",
    "decode_whole_body",
    "extract_common_text",
    "no_text_placeholder",
    "payload_error",
]

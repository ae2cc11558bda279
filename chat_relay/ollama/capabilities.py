"""Ollama ``/api/chat`` capability set.

Local server, no authentication. Streaming responses are newline-delimited
JSON documents (not SSE) each carrying ``message.content``; the last one has
``"done": true``. Non-streamed responses are a single document of the same
shape.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

from ..base.interfaces import JSON_CONTENT_TYPE, CapabilitySet, encode_json
from ..base.models import Header, Message
from ..config.defaults import OLLAMA_DEFAULT_ENDPOINT, OLLAMA_DEFAULT_MODEL


def _message_content(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    message = payload.get("message")
    if isinstance(message, dict) and isinstance(message.get("content"), str):
        return message["content"]
    # /api/generate shape
    response = payload.get("response")
    return response if isinstance(response, str) else None


class OllamaCapabilities(CapabilitySet):
    __slots__ = ()

    name = "ollama"
    default_model = OLLAMA_DEFAULT_MODEL
    default_endpoint = OLLAMA_DEFAULT_ENDPOINT
    requires_api_key = False
    stream_framing = "ndjson"

    def build_headers(self, model: str, messages: Sequence[Message], api_key: Optional[str]) -> List[Header]:
        return [("Content-Type", JSON_CONTENT_TYPE)]

    def build_body(self, model: str, messages: Sequence[Message], stream: bool) -> bytes:
        payload = {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "stream": stream,
        }
        return encode_json(payload)

    def parse_response(self, payload: Any) -> Optional[str]:
        return _message_content(payload)

    def parse_stream_event(self, payload: Any) -> Optional[str]:
        return _message_content(payload)


__all__ = ["OllamaCapabilities"]

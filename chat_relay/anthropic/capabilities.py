"""Anthropic Messages API capability set (registered as ``claude``).

Wire shape:
- ``x-api-key`` plus a pinned ``anthropic-version`` header.
- System messages are lifted out of ``messages`` into the top-level
  ``system`` string; ``max_tokens`` is mandatory.
- Whole responses carry a ``content`` list of blocks; stream text arrives in
  ``content_block_delta`` events as ``delta.text``. Other event types
  (``message_start``, ``ping``, ``message_stop``...) carry no text.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from ..base.interfaces import JSON_CONTENT_TYPE, CapabilitySet, encode_json
from ..base.models import Header, Message
from ..config.defaults import (
    ANTHROPIC_API_VERSION,
    ANTHROPIC_DEFAULT_ENDPOINT,
    ANTHROPIC_DEFAULT_MAX_TOKENS,
    ANTHROPIC_DEFAULT_MODEL,
)


def split_system(messages: Sequence[Message]) -> tuple:
    """Return ``(system_text, remaining_messages)``.

    Multiple system messages are joined with blank lines in order.
    """
    system_parts = [m.content for m in messages if m.role == "system"]
    rest = [m for m in messages if m.role != "system"]
    return "\n\n".join(system_parts), rest


class ClaudeCapabilities(CapabilitySet):
    __slots__ = ()

    name = "claude"
    default_model = ANTHROPIC_DEFAULT_MODEL
    default_endpoint = ANTHROPIC_DEFAULT_ENDPOINT
    api_key_env_var = "ANTHROPIC_API_KEY"

    def build_headers(self, model: str, messages: Sequence[Message], api_key: Optional[str]) -> List[Header]:
        self.require_api_key(api_key)
        headers: List[Header] = [("Content-Type", JSON_CONTENT_TYPE)]
        if api_key:
            headers.append(("x-api-key", api_key))
        headers.append(("anthropic-version", ANTHROPIC_API_VERSION))
        return headers

    def build_body(self, model: str, messages: Sequence[Message], stream: bool) -> bytes:
        system, rest = split_system(messages)
        payload: Dict[str, Any] = {
            "model": model,
            "max_tokens": ANTHROPIC_DEFAULT_MAX_TOKENS,
            "messages": [{"role": m.role, "content": m.content} for m in rest],
            "stream": stream,
        }
        if system:
            payload["system"] = system
        return encode_json(payload)

    def parse_response(self, payload: Any) -> Optional[str]:
        if not isinstance(payload, dict):
            return None
        blocks = payload.get("content")
        if not isinstance(blocks, list):
            return None
        texts = [
            b["text"]
            for b in blocks
            if isinstance(b, dict) and b.get("type", "text") == "text" and isinstance(b.get("text"), str)
        ]
        return "".join(texts) if texts else None

    def parse_stream_event(self, payload: Any) -> Optional[str]:
        if not isinstance(payload, dict) or payload.get("type") != "content_block_delta":
            return None
        delta = payload.get("delta")
        if isinstance(delta, dict) and isinstance(delta.get("text"), str):
            return delta["text"]
        return None


__all__ = ["ClaudeCapabilities", "split_system"]

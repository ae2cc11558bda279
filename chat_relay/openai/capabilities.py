"""OpenAI chat-completions capability set.

Wire shape:
- ``Authorization: Bearer <key>`` header auth.
- Body ``{"model", "messages": [{"role", "content"}], "stream"}``.
- Whole responses carry text at ``choices[0].message.content``; stream
  events carry deltas at ``choices[0].delta.content`` and the stream ends
  with a literal ``[DONE]`` payload.

OpenAI-compatible providers (DeepSeek, OpenRouter, xAI) subclass
``OpenAICapabilities`` and only swap the class attributes.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from ..base.interfaces import JSON_CONTENT_TYPE, CapabilitySet, encode_json
from ..base.models import Header, Message
from ..config.defaults import OPENAI_DEFAULT_ENDPOINT, OPENAI_DEFAULT_MODEL

DONE_SENTINEL = "[DONE]"


def _first_choice(payload: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    return first if isinstance(first, dict) else None


class OpenAICapabilities(CapabilitySet):
    """Capability set for OpenAI-style ``/chat/completions`` endpoints."""

    __slots__ = ()

    name = "openai"
    default_model = OPENAI_DEFAULT_MODEL
    default_endpoint = OPENAI_DEFAULT_ENDPOINT
    api_key_env_var = "OPENAI_API_KEY"

    def build_headers(self, model: str, messages: Sequence[Message], api_key: Optional[str]) -> List[Header]:
        self.require_api_key(api_key)
        headers: List[Header] = [("Content-Type", JSON_CONTENT_TYPE)]
        if api_key:
            headers.append(("Authorization", f"Bearer {api_key}"))
        return headers

    def build_body(self, model: str, messages: Sequence[Message], stream: bool) -> bytes:
        payload = {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "stream": stream,
        }
        return encode_json(payload)

    def parse_response(self, payload: Any) -> Optional[str]:
        choice = _first_choice(payload)
        if choice is None:
            return None
        message = choice.get("message")
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            return message["content"]
        # legacy completions shape
        text = choice.get("text")
        return text if isinstance(text, str) else None

    def parse_stream_event(self, payload: Any) -> Optional[str]:
        choice = _first_choice(payload)
        if choice is None:
            return None
        delta = choice.get("delta")
        if isinstance(delta, dict):
            content = delta.get("content")
            if isinstance(content, str):
                return content
        return None

    def is_stream_sentinel(self, data: str) -> bool:
        return data.strip() == DONE_SENTINEL


__all__ = ["OpenAICapabilities", "DONE_SENTINEL"]

"""Google Gemini ``generateContent`` capability set.

Wire shape:
- The key travels as the ``key`` query parameter; the execution engine
  appends it to the URL right before spawning so prepared requests and logs
  never contain it.
- Endpoint template carries ``{model}`` and ``{method}``: streaming uses
  ``streamGenerateContent?alt=sse`` and buffered requests use
  ``generateContent``.
- ``assistant`` is renamed to ``model``; system messages become the
  top-level ``systemInstruction``.
- Text lives at ``candidates[0].content.parts[*].text`` in both whole
  responses and stream events.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from ..base.interfaces import JSON_CONTENT_TYPE, CapabilitySet, encode_json
from ..base.models import Header, Message
from ..config.defaults import GEMINI_DEFAULT_ENDPOINT, GEMINI_DEFAULT_MODEL

STREAM_METHOD = "streamGenerateContent"
BUFFERED_METHOD = "generateContent"

_ROLE_MAP = {"user": "user", "assistant": "model"}


def _candidate_text(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return None
    content = candidates[0].get("content")
    if not isinstance(content, dict):
        return None
    parts = content.get("parts")
    if not isinstance(parts, list):
        return None
    texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
    return "".join(texts) if texts else None


class GeminiCapabilities(CapabilitySet):
    __slots__ = ()

    name = "gemini"
    default_model = GEMINI_DEFAULT_MODEL
    default_endpoint = GEMINI_DEFAULT_ENDPOINT
    api_key_env_var = "GEMINI_API_KEY"
    api_key_query_param = "key"

    def resolve_endpoint(self, endpoint: str, model: str, *, stream: bool) -> str:
        url = super().resolve_endpoint(endpoint, model, stream=stream)
        if "{method}" not in url:
            return url
        url = url.replace("{method}", STREAM_METHOD if stream else BUFFERED_METHOD)
        if stream:
            url += ("&" if "?" in url else "?") + "alt=sse"
        return url

    def build_headers(self, model: str, messages: Sequence[Message], api_key: Optional[str]) -> List[Header]:
        self.require_api_key(api_key)
        return [("Content-Type", JSON_CONTENT_TYPE)]

    def build_body(self, model: str, messages: Sequence[Message], stream: bool) -> bytes:
        system_parts = [{"text": m.content} for m in messages if m.role == "system"]
        payload: Dict[str, Any] = {
            "contents": [
                {"role": _ROLE_MAP[m.role], "parts": [{"text": m.content}]}
                for m in messages
                if m.role != "system"
            ]
        }
        if system_parts:
            payload["systemInstruction"] = {"parts": system_parts}
        return encode_json(payload)

    def parse_response(self, payload: Any) -> Optional[str]:
        if isinstance(payload, list):
            # streamGenerateContent without alt=sse returns a JSON array
            texts = [t for t in (_candidate_text(p) for p in payload) if t]
            return "".join(texts) if texts else None
        return _candidate_text(payload)

    def parse_stream_event(self, payload: Any) -> Optional[str]:
        return _candidate_text(payload)


__all__ = ["GeminiCapabilities", "STREAM_METHOD", "BUFFERED_METHOD"]

"""Wire-format checks for every capability set."""
from __future__ import annotations

import json

import pytest

from chat_relay.anthropic import ClaudeCapabilities
from chat_relay.base.errors import ErrorCode, ProviderError
from chat_relay.base.models import Message
from chat_relay.deepseek import DeepSeekCapabilities
from chat_relay.gemini import GeminiCapabilities
from chat_relay.ollama import OllamaCapabilities
from chat_relay.openai import DONE_SENTINEL, OpenAICapabilities
from chat_relay.openrouter import OpenRouterCapabilities
from chat_relay.xai import XAICapabilities

CONVERSATION = (
    Message("system", "Be brief."),
    Message("user", "Hi"),
    Message("assistant", "Hello!"),
    Message("system", "Use English."),
    Message("user", "Again"),
)


@pytest.mark.parametrize(
    "cls, name, env_var",
    [
        (OpenAICapabilities, "openai", "OPENAI_API_KEY"),
        (DeepSeekCapabilities, "deepseek", "DEEPSEEK_API_KEY"),
        (OpenRouterCapabilities, "openrouter", "OPENROUTER_API_KEY"),
        (XAICapabilities, "xai", "XAI_API_KEY"),
    ],
)
def test_openai_compatible_family(cls, name, env_var):
    cap = cls()
    assert cap.name == name
    assert cap.api_key_env_var == env_var
    assert cap.default_endpoint.endswith("/chat/completions")
    assert cap.build_headers("m", CONVERSATION, "k") == [
        ("Content-Type", "application/json"),
        ("Authorization", "Bearer k"),
    ]
    body = json.loads(cap.build_body("m", CONVERSATION, True))
    assert body["messages"][0] == {"role": "system", "content": "Be brief."}
    assert len(body["messages"]) == 5


def test_openai_parsers():
    cap = OpenAICapabilities()
    assert cap.parse_response({"choices": [{"message": {"content": "Hello"}}]}) == "Hello"
    assert cap.parse_response({"choices": [{"text": "legacy"}]}) == "legacy"
    assert cap.parse_response({"choices": []}) is None
    assert cap.parse_stream_event({"choices": [{"delta": {"role": "assistant"}}]}) is None
    assert cap.parse_stream_event({"choices": [{"delta": {"content": "x"}}]}) == "x"
    assert cap.is_stream_sentinel(DONE_SENTINEL)
    assert not cap.is_stream_sentinel('{"done": true}')


def test_missing_key_is_auth_missing():
    with pytest.raises(ProviderError) as excinfo:
        DeepSeekCapabilities().build_headers("m", CONVERSATION, None)
    assert excinfo.value.code is ErrorCode.AUTH_MISSING
    assert excinfo.value.message == "No API key configured for provider 'deepseek' (set DEEPSEEK_API_KEY)"


def test_claude_body_and_parsers():
    cap = ClaudeCapabilities()
    body = json.loads(cap.build_body("claude-x", CONVERSATION, False))
    assert body["system"] == "Be brief.\n\nUse English."
    assert [m["role"] for m in body["messages"]] == ["user", "assistant", "user"]

    assert cap.parse_response({"content": [{"text": "Hi"}]}) == "Hi"
    assert cap.parse_response({"content": [{"type": "tool_use", "id": "t"}, {"type": "text", "text": "ok"}]}) == "ok"
    assert cap.parse_response({"content": []}) is None
    assert cap.parse_stream_event({"type": "message_stop"}) is None
    assert cap.parse_stream_event({"type": "content_block_delta", "delta": {"type": "input_json_delta"}}) is None


def test_claude_body_without_system():
    body = json.loads(ClaudeCapabilities().build_body("c", (Message("user", "x"),), True))
    assert "system" not in body
    assert body["stream"] is True


def test_gemini_body_roles_and_system_instruction():
    cap = GeminiCapabilities()
    body = json.loads(cap.build_body("g", CONVERSATION, True))
    assert [c["role"] for c in body["contents"]] == ["user", "model", "user"]
    assert body["systemInstruction"] == {"parts": [{"text": "Be brief."}, {"text": "Use English."}]}
    assert "model" not in body


def test_gemini_endpoint_methods():
    cap = GeminiCapabilities()
    template = "https://h/v1beta/models/{model}:{method}"
    assert cap.resolve_endpoint(template, "gemini-2.5-flash", stream=True) == (
        "https://h/v1beta/models/gemini-2.5-flash:streamGenerateContent?alt=sse"
    )
    assert cap.resolve_endpoint(template, "gemini-2.5-flash", stream=False) == (
        "https://h/v1beta/models/gemini-2.5-flash:generateContent"
    )
    assert cap.resolve_endpoint("https://proxy/generate", "m", stream=True) == "https://proxy/generate"


def test_gemini_parsers():
    cap = GeminiCapabilities()
    chunk = {"candidates": [{"content": {"role": "model", "parts": [{"text": "Hel"}]}}]}
    assert cap.parse_stream_event(chunk) == "Hel"
    assert cap.parse_response([chunk, {"candidates": [{"content": {"parts": [{"text": "lo"}]}}]}]) == "Hello"
    assert cap.parse_response({"candidates": [{"finishReason": "SAFETY"}]}) is None
    assert cap.api_key_query_param == "key"


def test_ollama_needs_no_key_and_uses_ndjson():
    cap = OllamaCapabilities()
    assert cap.requires_api_key is False
    assert cap.stream_framing == "ndjson"
    assert cap.build_headers("llama3.2", CONVERSATION, None) == [("Content-Type", "application/json")]
    body = json.loads(cap.build_body("llama3.2", CONVERSATION, False))
    assert body["stream"] is False
    assert cap.parse_response({"message": {"content": "hi"}, "done": True}) == "hi"
    assert cap.parse_response({"response": "generated"}) == "generated"


def test_capabilities_are_stateless():
    with pytest.raises(AttributeError):
        OpenAICapabilities().cache = {}  # type: ignore[attr-defined]

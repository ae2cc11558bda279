from __future__ import annotations

import json

import pytest

from chat_relay.base.errors import ErrorCode, ProviderError
from chat_relay.base.models import RequestDescriptor
from chat_relay.base.request_builder import RequestBuilder

MESSAGES = [
    {"role": "system", "content": "Be brief."},
    {"role": "user", "content": "Hi"},
]


def _build(registry, provider, *, model="", stream=True):
    return RequestBuilder(registry).build(RequestDescriptor.create(provider, model, MESSAGES, stream=stream))


def test_openai_request(registry):
    prepared = _build(registry, "openai")

    assert prepared.endpoint == "https://api.openai.com/v1/chat/completions"
    assert prepared.model == "gpt-4o-mini"
    assert prepared.headers == (
        ("Content-Type", "application/json"),
        ("Authorization", "Bearer sk-live-0123456789"),
    )
    body = json.loads(prepared.body)
    assert body == {"model": "gpt-4o-mini", "messages": MESSAGES, "stream": True}


def test_explicit_model_wins(registry):
    assert _build(registry, "deepseek", model="deepseek-reasoner").model == "deepseek-reasoner"


def test_claude_request_lifts_system(registry):
    prepared = _build(registry, "claude", stream=False)
    headers = dict(prepared.headers)

    assert headers["x-api-key"] == "sk-live-0123456789"
    assert headers["anthropic-version"] == "2023-06-01"
    body = json.loads(prepared.body)
    assert body["system"] == "Be brief."
    assert body["messages"] == [{"role": "user", "content": "Hi"}]
    assert body["stream"] is False
    assert body["max_tokens"] > 0


def test_gemini_endpoint_never_carries_the_key(registry):
    prepared = _build(registry, "gemini")
    assert "key=" not in prepared.endpoint
    assert dict(prepared.headers) == {"Content-Type": "application/json"}


def test_redacted_view(registry):
    view = _build(registry, "openai").to_dict()
    assert ["Authorization", "***"] in view["headers"]
    assert "sk-live" not in json.dumps(view)


def test_missing_key_raises_auth_missing():
    from chat_relay.base.factory import build_default_registry

    with pytest.raises(ProviderError) as excinfo:
        _build(build_default_registry(), "xai")
    assert excinfo.value.code is ErrorCode.AUTH_MISSING
    assert "XAI_API_KEY" in excinfo.value.message


def test_ollama_needs_no_key():
    from chat_relay.base.factory import build_default_registry

    prepared = _build(build_default_registry(), "ollama")
    assert prepared.endpoint == "http://localhost:11434/api/chat"
    assert dict(prepared.headers) == {"Content-Type": "application/json"}

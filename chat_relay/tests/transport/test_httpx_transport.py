from __future__ import annotations

import json

import httpx
import pytest

from chat_relay.base.models import RequestDescriptor
from chat_relay.base.streaming import ExecutionEngine
from chat_relay.base.transport import HttpxTransport, exit_code_for
from chat_relay.base.transport.httpx_transport import header_block
from chat_relay.service.sinks import CollectingSink

MESSAGES = [{"role": "user", "content": "hi"}]


def _transport(handler) -> HttpxTransport:
    return HttpxTransport(httpx.Client(transport=httpx.MockTransport(handler)))


def _run(registry, transport, provider="openai", *, stream=True):
    sink = CollectingSink()
    descriptor = RequestDescriptor.create(provider, registry.resolve_model(provider), MESSAGES, stream=stream)
    engine = ExecutionEngine(registry, transport, sink, descriptor)
    engine.start()
    assert sink.wait(10.0)
    return engine, sink


def test_streamed_exchange(registry):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        body = b"".join(
            f'data: {{"choices":[{{"delta":{{"content":"{w}"}}}}]}}\n\n'.encode() for w in ("Hel", "lo")
        )
        return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=body + b"data: [DONE]\n\n")

    engine, sink = _run(registry, _transport(handler))

    assert sink.chunks == ["Hel", "lo"]
    assert sink.full_text == "Hello"
    assert engine.ctx.http_status == 200
    assert seen["auth"] == "Bearer sk-live-0123456789"
    assert seen["body"]["stream"] is True


def test_buffered_exchange_with_query_key(registry):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "Hi"}]}}]})

    _, sink = _run(registry, _transport(handler), "gemini", stream=False)

    assert sink.full_text == "Hi"
    assert ":generateContent?key=sk-live-0123456789" in seen["url"]


def test_error_status_is_classified(registry):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": {"message": "rate limited"}})

    _, sink = _run(registry, _transport(handler))

    assert sink.error.startswith("HTTP 429 Too Many Requests from openai")
    assert "rate limited" in sink.error


def test_connect_error_maps_to_connect_exit(registry):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

    _, sink = _run(registry, _transport(handler))

    assert sink.error.startswith("Failed to connect to host (transport exit 7)")
    assert "ConnectError" in sink.error


@pytest.mark.parametrize(
    "exc, code",
    [
        (httpx.ReadTimeout("read timed out"), 28),
        (httpx.ConnectTimeout("connect timed out"), 28),
        (httpx.ConnectError("[Errno -2] Name or service not known"), 6),
        (httpx.ConnectError("[SSL: CERTIFICATE_VERIFY_FAILED] certificate verify failed"), 60),
        (httpx.RemoteProtocolError("Server disconnected without sending a response."), 52),
        (httpx.ReadError("connection reset"), 56),
        (FileNotFoundError("gone"), 26),
        (RuntimeError("?"), 1),
    ],
)
def test_exit_code_for(exc, code):
    assert exit_code_for(exc) == code


def test_header_block_looks_like_curl_include():
    response = httpx.Response(201, headers={"x-a": "1"})
    block = header_block(response)
    assert block.startswith(b"HTTP/1.1 201 Created\r\n")
    assert b"x-a: 1\r\n" in block
    assert block.endswith(b"\r\n\r\n")

from __future__ import annotations

import pytest

from chat_relay.anthropic import ClaudeCapabilities
from chat_relay.base.errors import ErrorCode, ProviderError
from chat_relay.base.streaming import (
    decode_stream_line,
    decode_whole_body,
    extract_common_text,
    no_text_placeholder,
)
from chat_relay.gemini import GeminiCapabilities
from chat_relay.ollama import OllamaCapabilities
from chat_relay.openai import OpenAICapabilities

OPENAI = OpenAICapabilities()
CLAUDE = ClaudeCapabilities()
OLLAMA = OllamaCapabilities()
GEMINI = GeminiCapabilities()


@pytest.mark.parametrize(
    "line",
    [b"", b"   ", b"event: message_start", b"id: 7", b"retry: 1000", b": keep-alive", b"data:", b"not a data line"],
)
def test_sse_lines_without_payload_are_skipped(line):
    decoded = decode_stream_line(line, OPENAI)
    assert decoded.text is None and decoded.error is None and decoded.malformed is None


def test_sse_delta_is_extracted():
    decoded = decode_stream_line(b'data: {"choices":[{"delta":{"content":"Hel"}}]}\r', OPENAI)
    assert decoded.text == "Hel"


def test_done_sentinel_is_not_json():
    decoded = decode_stream_line("data: [DONE]", OPENAI)
    assert decoded.sentinel is True
    assert decoded.malformed is None


def test_malformed_payload_is_reported_not_raised():
    decoded = decode_stream_line("data: {oops", OPENAI)
    assert decoded.malformed == "{oops"


def test_error_payload_wins_over_delta():
    decoded = decode_stream_line('data: {"type":"error","error":{"type":"overloaded_error","message":"Overloaded"}}', CLAUDE)
    assert decoded.error == "Overloaded"


def test_claude_ignores_non_delta_events():
    assert decode_stream_line('data: {"type":"message_start","message":{"content":[]}}', CLAUDE).text is None
    assert decode_stream_line('data: {"type":"content_block_delta","delta":{"type":"text_delta","text":"Hi"}}', CLAUDE).text == "Hi"


def test_ndjson_lines_are_whole_documents():
    decoded = decode_stream_line(b'{"message":{"content":"lo"},"done":false}', OLLAMA)
    assert decoded.text == "lo"
    assert decode_stream_line(b'{"message":{"content":""},"done":true}', OLLAMA).text is None


def test_ndjson_error_document():
    assert decode_stream_line('{"error":"model \'x\' not found"}', OLLAMA).error == "model 'x' not found"


def test_whole_body_uses_provider_parser():
    body = b'{"candidates":[{"content":{"parts":[{"text":"Hel"},{"text":"lo"}]}}]}'
    assert decode_whole_body(body, GEMINI) == "Hello"


def test_whole_body_falls_back_to_common_fields():
    assert decode_whole_body('{"output": "plain"}', OPENAI) == "plain"


def test_whole_body_without_text_yields_placeholder():
    assert decode_whole_body('{"id": "x", "choices": []}', OPENAI) == no_text_placeholder("openai")
    assert no_text_placeholder("openai") == "[openai: response contained no text content]"


def test_whole_body_without_text_can_skip_the_placeholder():
    assert decode_whole_body('{"id": "x", "choices": []}', OPENAI, placeholder=False) == ""
    ndjson = '{"message": {"content": ""}, "done": false}\n{"done": true}\n'
    assert decode_whole_body(ndjson, OLLAMA) == no_text_placeholder("ollama")
    assert decode_whole_body(ndjson, OLLAMA, placeholder=False) == ""


def test_whole_body_error_payload_raises_provider_error():
    with pytest.raises(ProviderError) as excinfo:
        decode_whole_body('{"error":{"message":"Invalid model"}}', OPENAI)
    assert excinfo.value.code is ErrorCode.PROVIDER_ERROR
    assert excinfo.value.message == "Provider error from openai: Invalid model"


def test_whole_body_empty_and_malformed():
    with pytest.raises(ProviderError) as empty:
        decode_whole_body(b"  \n", CLAUDE)
    assert empty.value.code is ErrorCode.EMPTY_RESPONSE

    with pytest.raises(ProviderError) as bad:
        decode_whole_body(b"<html></html>", CLAUDE)
    assert bad.value.code is ErrorCode.MALFORMED_PAYLOAD
    assert bad.value.message.startswith("Malformed response from claude")


def test_ndjson_stream_body_decoded_as_whole_body():
    body = b'{"message":{"content":"Hel"}}\n{"message":{"content":"lo"},"done":true}\n'
    assert decode_whole_body(body, OLLAMA) == "Hello"


def test_extract_common_text_shapes():
    assert extract_common_text({"message": {"content": "m"}}) == "m"
    assert extract_common_text({"choices": [{"text": "t"}]}) == "t"
    assert extract_common_text([{"text": "a"}, {"text": "b"}]) == "ab"
    assert extract_common_text({"n": 1}) is None

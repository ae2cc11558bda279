from __future__ import annotations

import types

from chat_relay.base.errors import (
    ErrorCode,
    ProviderError,
    classify_exception,
    classify_http_status,
    classify_transport_exit,
    compose_failure_message,
    describe_exit_status,
    error_message_from,
    extract_body_error,
)


def test_describe_exit_status():
    assert describe_exit_status(6) == "Could not resolve host (DNS resolution failed) (transport exit 6)"
    assert describe_exit_status(28).startswith("Operation timed out")
    assert describe_exit_status(-15, "SIGTERM") == "Transport terminated by signal SIGTERM"
    assert describe_exit_status(99) == "Transport exited with status 99"


def test_error_message_shapes():
    assert error_message_from({"error": {"message": "bad key"}}) == "bad key"
    assert error_message_from({"error": "model not found"}) == "model not found"
    assert error_message_from({"error": {"type": "overloaded_error"}}) == "overloaded_error"
    assert error_message_from([{"error": {"code": 429, "message": "quota", "status": "RESOURCE_EXHAUSTED"}}]) == "quota"
    assert error_message_from({"message": "nope", "code": 400}) == "nope"
    # a chat message is not an error
    assert error_message_from({"message": "hello"}) is None
    assert error_message_from({"choices": []}) is None


def test_extract_body_error_guards_raw_text():
    assert extract_body_error(b'{"error":{"message":"rate limited"}}') == "rate limited"
    assert extract_body_error("Unauthorized: invalid token") == "Unauthorized: invalid token"
    assert extract_body_error("<html>" + "x" * 1000 + " error</html>") is None
    assert extract_body_error("all good") is None
    assert extract_body_error(None) is None


def test_compose_failure_message_lines():
    msg = compose_failure_message("HTTP 500 from x", diagnostics="  curl: (22)  ", body_error="boom")
    assert msg.splitlines() == ["HTTP 500 from x", "Transport diagnostics: curl: (22)", "Provider error: boom"]
    assert compose_failure_message("cause") == "cause"


def test_classify_transport_exit_combines_sources():
    err = classify_transport_exit(
        22,
        provider="openai",
        model="gpt-4o-mini",
        stderr="curl: (22) The requested URL returned error: 429",
        body=b'{"error":{"message":"rate limited"}}',
    )
    assert err.code is ErrorCode.TRANSPORT_FAILURE
    assert err.message.splitlines()[0].startswith("HTTP error returned by server")
    assert "rate limited" in err.message
    assert err.provider == "openai"

    timeout = classify_transport_exit(28, provider="claude")
    assert timeout.code is ErrorCode.TIMEOUT
    assert timeout.retryable is True


def test_classify_http_status_codes():
    assert classify_http_status(401, provider="p").code is ErrorCode.AUTH
    assert classify_http_status(404, provider="p").code is ErrorCode.NOT_FOUND
    assert classify_http_status(418, provider="p").code is ErrorCode.VALIDATION
    assert classify_http_status(503, provider="p").code is ErrorCode.UNAVAILABLE
    assert classify_http_status(599, provider="p").code is ErrorCode.SERVER_ERROR
    err = classify_http_status(500, provider="p", reason="Internal Server Error", body="upstream exploded")
    assert err.message == "HTTP 500 Internal Server Error from p\nProvider error: upstream exploded"


def test_classify_exception():
    e = ProviderError(code=ErrorCode.AUTH, message="nope", provider="x")
    assert classify_exception(e) is ErrorCode.AUTH  # nosec B101 - assert is appropriate in unit tests
    assert classify_exception(TimeoutError()) is ErrorCode.TIMEOUT
    assert classify_exception(types.SimpleNamespace(status_code=429)) is ErrorCode.RATE_LIMIT
    assert classify_exception(Exception("timed out waiting")) is ErrorCode.TIMEOUT
    assert classify_exception(Exception("random")) is ErrorCode.INTERNAL

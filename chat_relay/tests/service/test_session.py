from __future__ import annotations

import pytest

from chat_relay.base.errors import ErrorCode, ProviderError
from chat_relay.service.session import RelaySession
from chat_relay.service.sinks import CollectingSink
from chat_relay.tests.fakes import SSE_HEADERS, FakeTransport, ScriptedTransport, sse

HI = [{"role": "user", "content": "hi"}]


def _delta(text):
    return sse({"choices": [{"delta": {"content": text}}]})


def test_dispatch_returns_immediately_and_completes(session, fake_transport):
    sink = CollectingSink()
    ctx = session.dispatch(sink, "openai", HI)

    assert ctx.active
    assert session.is_active(sink)
    assert session.active_context(sink) is ctx
    assert ctx.model == "gpt-4o-mini"

    fake_transport.respond(_delta("Hi"), headers=SSE_HEADERS)

    assert sink.full_text == "Hi"
    assert not session.is_active(sink)
    assert session.active_context(sink) is None


def test_second_dispatch_on_a_busy_sink_is_refused(session, fake_transport):
    sink = CollectingSink()
    session.dispatch(sink, "openai", HI)

    with pytest.raises(ProviderError) as excinfo:
        session.dispatch(sink, "claude", HI)
    assert excinfo.value.code is ErrorCode.REQUEST_IN_PROGRESS
    assert len(fake_transport.requests) == 1

    # the first request is undisturbed
    fake_transport.respond(_delta("still here"), headers=SSE_HEADERS)
    assert sink.full_text == "still here"
    assert sink.terminal_calls == 1


def test_distinct_sinks_run_independently(registry):
    transport_a, transport_b = FakeTransport(), FakeTransport()
    session_a = RelaySession(registry, transport_a)
    sink_a, sink_b = CollectingSink(), CollectingSink()
    session_a.dispatch(sink_a, "openai", HI)
    session_a.transport = transport_b
    session_a.dispatch(sink_b, "openai", HI)

    transport_b.respond(_delta("b"), headers=SSE_HEADERS)
    transport_a.respond(_delta("a"), headers=SSE_HEADERS)

    assert (sink_a.full_text, sink_b.full_text) == ("a", "b")


def test_explicit_model_is_used(session, fake_transport):
    session.dispatch(CollectingSink(), "openai", HI, model="gpt-4.1")
    assert b'"model":"gpt-4.1"' in fake_transport.bodies[0]


def test_unknown_provider_goes_to_the_sink(session, fake_transport):
    sink = CollectingSink()
    session.dispatch(sink, "mystery", HI)

    assert sink.error.startswith("Unknown provider 'mystery'")
    assert not session.is_active(sink)
    assert fake_transport.requests == []


def test_cancel_without_active_request_is_a_noop(session, relay_logs):
    sink = CollectingSink()
    assert session.cancel(sink) is False
    assert sink.terminal_calls == 0
    assert relay_logs.named("request.cancel")[0]["message"] == "no active request"


def test_cancel_active_request(session, fake_transport):
    sink = CollectingSink()
    session.dispatch(sink, "openai", HI)

    assert session.cancel(sink) is True
    assert sink.cancelled
    assert not session.is_active(sink)
    assert session.cancel(sink) is False


def test_sink_can_dispatch_again_from_on_complete(registry):
    transport = ScriptedTransport(SSE_HEADERS + _delta("one"))
    session = RelaySession(registry, transport)

    class ChainingSink(CollectingSink):
        def __init__(self):
            super().__init__()
            self.completions = []

        def on_complete(self, full_text):
            self.completions.append(full_text)
            if len(self.completions) == 1:
                session.dispatch(self, "openai", HI)
            else:
                super().on_complete(full_text)

    sink = ChainingSink()
    session.dispatch(sink, "openai", HI)

    assert sink.completions == ["one", "one"]
    assert len(transport.requests) == 2
    assert not session.is_active(sink)


def test_shutdown_cancels_everything(session):
    transports = [FakeTransport(), FakeTransport()]
    sinks = [CollectingSink(), CollectingSink()]
    for transport, sink in zip(transports, sinks):
        session.transport = transport
        session.dispatch(sink, "openai", HI)

    session.shutdown(timeout=1.0)

    assert all(s.cancelled for s in sinks)
    assert all(t.handle.terminated == 1 for t in transports)

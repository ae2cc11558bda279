from __future__ import annotations

import io

from chat_relay.service.sinks import CollectingSink, StreamWriterSink


def test_collecting_sink_records_events():
    sink = CollectingSink()
    sink.on_chunk("a")
    sink.on_chunk("b")
    assert not sink.done
    sink.on_complete("ab")

    assert sink.chunks == ["a", "b"]
    assert sink.full_text == "ab"
    assert sink.events == ["chunk", "chunk", "complete"]
    assert sink.wait(0)


def test_stream_writer_streams_chunks():
    out, err = io.StringIO(), io.StringIO()
    sink = StreamWriterSink(out, err)
    sink.on_chunk("Hel")
    sink.on_chunk("lo")
    sink.on_complete("Hello")

    assert out.getvalue() == "Hello\n"
    assert err.getvalue() == ""
    assert sink.exit_code == 0


def test_stream_writer_echo_complete_mode():
    out = io.StringIO()
    sink = StreamWriterSink(out, io.StringIO(), echo_complete=True)
    sink.on_chunk("ignored")
    sink.on_complete("whole")
    assert out.getvalue() == "whole\n"


def test_stream_writer_error_and_cancel():
    err = io.StringIO()
    failing = StreamWriterSink(io.StringIO(), err)
    failing.on_error("HTTP 401 Unauthorized from openai")
    assert err.getvalue() == "error: HTTP 401 Unauthorized from openai\n"
    assert failing.exit_code == 1

    cancelled = StreamWriterSink(io.StringIO(), err)
    cancelled.on_cancelled()
    assert cancelled.exit_code == 130
    assert cancelled.wait(0)

"""CLI tests: parsing, dry-run planning, provider listing and ask execution."""
from __future__ import annotations

import io
import json

import pytest

from chat_relay.service import cli as relay_cli
from chat_relay.service.cli.cli_actions import build_messages, handle_ask, read_prompt
from chat_relay.service.cli.cli_parser import build_parser
from chat_relay.tests.fakes import JSON_HEADERS, SSE_HEADERS, ScriptedTransport, sse, status_headers


def _expect(cond: bool, msg: str) -> None:
    if not cond:
        pytest.fail(msg)


def test_no_subcommand_prints_help(capsys):
    code = relay_cli.main([])
    _expect(code == 2, f"expected exit code 2, got {code}")
    assert "usage:" in capsys.readouterr().out


def test_parser_defaults_and_stream_flags():
    parser = build_parser()
    args = parser.parse_args(["ask", "hello"])
    assert (args.provider, args.stream, args.transport, args.dry_run) == ("openai", True, "curl", False)
    assert parser.parse_args(["ask", "x", "--no-stream"]).stream is False
    assert parser.parse_args(["ask", "x", "--stream", "false"]).stream is False
    with pytest.raises(SystemExit):
        parser.parse_args(["ask", "x", "--transport", "telnet"])


def test_build_messages_and_stdin_prompt():
    assert build_messages("hi", "sys") == [
        {"role": "system", "content": "sys"},
        {"role": "user", "content": "hi"},
    ]
    assert read_prompt("-", io.StringIO("  from stdin \n")) == "from stdin"
    assert read_prompt("literal") == "literal"


def test_dry_run_prints_redacted_plan(api_keys, capsys):
    code = relay_cli.main(["ask", "hi", "--provider", "claude", "--no-stream", "--dry-run"])
    out = capsys.readouterr().out

    _expect(code == 0, f"expected exit code 0, got {code}")
    plan = json.loads(out)
    assert plan["provider"] == "claude"
    assert plan["endpoint"] == "https://api.anthropic.com/v1/messages"
    assert ["x-api-key", "***"] in plan["headers"]
    assert plan["stream"] is False
    assert plan["transport"] == "curl"
    assert "sk-live" not in out


def test_dry_run_missing_key_exits_2(capsys):
    code = relay_cli.main(["ask", "hi", "--provider", "openrouter", "--dry-run"])
    err = capsys.readouterr().err

    _expect(code == 2, f"expected exit code 2, got {code}")
    payload = json.loads(err.strip().splitlines()[-1])
    assert payload["code"] == "auth_missing"
    assert "OPENROUTER_API_KEY" in payload["error"]


def test_providers_listing(capsys):
    assert relay_cli.main(["providers"]) == 0
    out = capsys.readouterr().out
    lines = out.strip().splitlines()
    assert len(lines) == 7
    assert any(line.startswith("ollama") and line.rstrip().endswith("[-]") for line in lines)


def test_providers_json(capsys):
    assert relay_cli.main(["providers", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["gemini"]["api_key_env_var"] == "GEMINI_API_KEY"


def _ask(argv, transport, registry):
    args = build_parser().parse_args(argv)
    out, err = io.StringIO(), io.StringIO()
    code = handle_ask(args, registry=registry, transport=transport, out=out, err=err)
    return code, out.getvalue(), err.getvalue()


def test_ask_streams_to_stdout(registry):
    transport = ScriptedTransport(
        SSE_HEADERS,
        sse({"choices": [{"delta": {"content": "Hel"}}]}),
        sse({"choices": [{"delta": {"content": "lo"}}]}),
    )
    code, out, err = _ask(["ask", "hi"], transport, registry)

    assert (code, out, err) == (0, "Hello\n", "")


def test_ask_buffered(registry):
    transport = ScriptedTransport(JSON_HEADERS + b'{"message":{"content":"local"},"done":true}')
    code, out, _ = _ask(["ask", "hi", "--provider", "ollama", "--no-stream"], transport, registry)

    assert (code, out) == (0, "local\n")
    assert json.loads(transport.bodies[0])["stream"] is False


def test_ask_reports_failures(registry):
    transport = ScriptedTransport(status_headers(401, "Unauthorized") + b'{"error":{"message":"bad key"}}')
    code, out, err = _ask(["ask", "hi"], transport, registry)

    assert code == 1
    assert out == ""
    assert err.startswith("error: HTTP 401 Unauthorized from openai")
    assert "bad key" in err

"""CLI parser construction for chat-relay.

This module wires subparsers but contains no execution logic. Subcommand
handlers live in ``cli_actions`` to keep files small and testable.
"""

from __future__ import annotations

import argparse

from ...base.transport import TRANSPORTS
from ...config.defaults import CLI_DEFAULT_PROVIDER, CLI_DEFAULT_TRANSPORT


def _str2bool(v: str | None) -> bool:
    """Best-effort conversion of common truthy/falsey strings to bool.

    ``None`` (flag given without a value) maps to ``True``.
    """
    if v is None:
        return True
    val = v.strip().lower()
    if val in {"1", "t", "true", "y", "yes", "on"}:
        return True
    return False if val in {"0", "f", "false", "n", "no", "off"} else bool(val)


def add_stream_flags(parser: argparse.ArgumentParser, *, default: bool = True) -> None:
    """Attach ``--stream``/``--no-stream`` flags to a parser.

    ``--stream`` accepts an optional boolean (``--stream``, ``--stream false``);
    ``--no-stream`` is an explicit negation alias.
    """
    grp = parser.add_mutually_exclusive_group()
    grp.add_argument("--stream", nargs="?", const=True, type=_str2bool, default=default)
    grp.add_argument("--no-stream", dest="stream", action="store_false")


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level CLI parser with ``ask`` and ``providers``.

    Performs no side effects; no I/O or network calls occur here.
    """
    p = argparse.ArgumentParser(prog="chat-relay", description="Send a conversation to an LLM provider")
    p.add_argument("--log-level", default=None, help="Relay log level (default WARNING)")
    sub = p.add_subparsers(dest="cmd")

    # ask
    p_ask = sub.add_parser("ask", help="Send one prompt and print the response")
    p_ask.add_argument("prompt", help="User message ('-' reads stdin)")
    p_ask.add_argument("--provider", default=CLI_DEFAULT_PROVIDER)
    p_ask.add_argument("--model", default=None)
    p_ask.add_argument("--system", default=None, help="Optional system message")
    add_stream_flags(p_ask)
    p_ask.add_argument("--transport", choices=sorted(TRANSPORTS), default=CLI_DEFAULT_TRANSPORT)
    p_ask.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the resolved endpoint and headers (secrets redacted) without sending",
    )

    # providers
    p_prov = sub.add_parser("providers", help="List registered providers with resolved model and endpoint")
    p_prov.add_argument("--json", action="store_true")

    return p


__all__ = ["build_parser", "add_stream_flags"]

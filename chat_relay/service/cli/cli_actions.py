"""CLI action handlers.

Purpose
-------
Subcommand handlers for the chat-relay CLI, keeping the entrypoint minimal.
This module has no top-level side effects and is safe to import in tests.

Fallback & Error Semantics
--------------------------
- ``--dry-run`` builds the request without touching the network and prints a
  credential-free JSON view of it.
- Dispatch failures are written to stderr as ``error: <message>`` with a
  non-zero return code; Ctrl-C cancels the in-flight request (exit 130).
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, List, Optional, TextIO

from ...base.errors import ProviderError
from ...base.factory import build_default_registry
from ...base.interfaces import Transport
from ...base.models import RequestDescriptor
from ...base.registry import ProviderRegistry
from ...base.request_builder import RequestBuilder
from ...base.timeouts import get_timeout_config
from ...base.transport import create_transport
from ..session import RelaySession
from ..sinks import StreamWriterSink

# Poll interval while waiting so Ctrl-C is noticed promptly.
_WAIT_SLICE = 0.2


def build_messages(prompt: str, system: Optional[str] = None) -> List[Dict[str, str]]:
    """Return the conversation for a single-prompt request."""
    messages: List[Dict[str, str]] = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})
    return messages


def read_prompt(value: str, stdin: Optional[TextIO] = None) -> str:
    """Return ``value`` or, for ``-``, the whole of stdin."""
    if value != "-":
        return value
    return (stdin or sys.stdin).read().strip()


def plan_ask(args: argparse.Namespace, registry: ProviderRegistry) -> Dict[str, Any]:
    """Build the request ``ask`` would send and return its redacted view.

    Raises ``ProviderError`` for unknown providers or missing credentials.
    """
    model = args.model or registry.resolve_model(args.provider)
    descriptor = RequestDescriptor.create(
        args.provider,
        model,
        build_messages(read_prompt(args.prompt), args.system),
        stream=args.stream,
    )
    prepared = RequestBuilder(registry).build(descriptor)
    plan = prepared.to_dict()
    plan["transport"] = args.transport
    return plan


def handle_ask(
    args: argparse.Namespace,
    *,
    registry: Optional[ProviderRegistry] = None,
    transport: Optional[Transport] = None,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> int:
    """Run the ``ask`` subcommand and return the process exit code."""
    out = out or sys.stdout
    err = err or sys.stderr
    registry = registry or build_default_registry()

    if args.dry_run:
        try:
            plan = plan_ask(args, registry)
        except ProviderError as exc:
            err.write(json.dumps({"error": exc.message, "code": exc.code.value}) + "\n")
            return 2
        out.write(json.dumps(plan, indent=2) + "\n")
        return 0

    session = RelaySession(registry, transport or create_transport(args.transport))
    sink = StreamWriterSink(out, err, echo_complete=not args.stream)
    try:
        session.dispatch(
            sink,
            args.provider,
            build_messages(read_prompt(args.prompt), args.system),
            model=args.model,
            stream=args.stream,
        )
    except ProviderError as exc:
        err.write(f"error: {exc.message}\n")
        return 1

    try:
        while not sink.wait(_WAIT_SLICE):
            pass
    except KeyboardInterrupt:
        session.cancel(sink)
        sink.wait(get_timeout_config().cancel_grace_seconds + 1.0)
    return sink.exit_code if sink.exit_code is not None else 130


def handle_providers(
    args: argparse.Namespace,
    *,
    registry: Optional[ProviderRegistry] = None,
    out: Optional[TextIO] = None,
) -> int:
    """List registered providers with their resolved model and endpoint."""
    out = out or sys.stdout
    registry = registry or build_default_registry()
    described = registry.describe()
    if args.json:
        out.write(json.dumps(described, indent=2) + "\n")
        return 0
    width = max((len(name) for name in described), default=0)
    for name, info in described.items():
        auth = info["api_key_env_var"] or "-"
        out.write(f"{name.ljust(width)}  {info['model']}  {info['endpoint']}  [{auth}]\n")
    return 0


__all__ = ["build_messages", "read_prompt", "plan_ask", "handle_ask", "handle_providers"]

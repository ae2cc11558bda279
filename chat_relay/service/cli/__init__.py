"""chat-relay CLI (package entrypoint).

Wires argument parsing to the action handlers in ``cli_actions``; performs
no provider logic directly.

Public API re-exports:
- ``main``: CLI entrypoint callable
"""

from __future__ import annotations

import sys
from typing import Optional

from ...base.logging import configure_logger
from .cli_actions import handle_ask, handle_providers
from .cli_parser import build_parser


def main(argv: Optional[list[str]] = None) -> int:
	"""CLI entrypoint.

	Parameters
	----------
	argv: Optional[list[str]]
		Argument vector; when ``None`` uses ``sys.argv[1:]``.

	Returns
	-------
	int
		Process exit code (0 success, non-zero on error).
	"""
	p = build_parser()
	args = p.parse_args(list(sys.argv[1:] if argv is None else argv))
	if args.cmd is None:
		p.print_help()
		return 2
	configure_logger(level=args.log_level or "WARNING")
	if args.cmd == "providers":
		return handle_providers(args)
	return handle_ask(args)


if __name__ == "__main__":  # pragma: no cover
	raise SystemExit(main())

"""Transport response framing: header block split and status-line parsing.

Transports report the raw HTTP response as a header block, a blank line and
then the body. The separator is located exactly once per request; everything
after it is body content, even if the body itself contains blank lines.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple

HEADER_SEPARATORS: Tuple[bytes, ...] = (b"\r\n\r\n", b"\n\n")

_STATUS_LINE = re.compile(rb"^HTTP/(\d(?:\.\d)?)[ \t]+(\d{3})(?:[ \t]+([^\r\n]*))?", re.M)


@dataclass(frozen=True)
class StatusLine:
    """Parsed ``HTTP/<version> <status> <reason>`` line."""

    version: str
    status: int
    reason: str = ""

    @property
    def is_error(self) -> bool:
        return self.status >= 400


def find_header_end(buffer: bytes) -> Optional[Tuple[int, int]]:
    """Return ``(index, separator_length)`` of the first blank line, if any.

    Whichever separator (CRLF-CRLF or LF-LF) occurs earliest wins.
    """
    best: Optional[Tuple[int, int]] = None
    for sep in HEADER_SEPARATORS:
        idx = buffer.find(sep)
        if idx != -1 and (best is None or idx < best[0]):
            best = (idx, len(sep))
    return best


def split_header_block(buffer: bytes) -> Optional[Tuple[bytes, bytes]]:
    """Split ``buffer`` into ``(header_block, body)`` or ``None`` if incomplete."""
    found = find_header_end(buffer)
    if found is None:
        return None
    idx, size = found
    return buffer[:idx], buffer[idx + size:]


def parse_status_line(header_block: bytes) -> Optional[StatusLine]:
    """Parse the status line of a header block; ``None`` if absent."""
    match = _STATUS_LINE.search(header_block)
    if match is None:
        return None
    reason = (match.group(3) or b"").decode("latin-1").strip()
    return StatusLine(
        version=match.group(1).decode("ascii"),
        status=int(match.group(2)),
        reason=reason,
    )


__all__ = [
    "HEADER_SEPARATORS",
    "StatusLine",
    "find_header_end",
    "split_header_block",
    "parse_status_line",
]

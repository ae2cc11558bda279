"""
PreparedRequest DTO produced by the request builder.

Holds the resolved endpoint, ordered header list and serialized body. The
endpoint is never augmented with query-string credentials here; that happens
in the execution engine immediately before the transport is spawned.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

Header = Tuple[str, str]

_SECRET_HEADERS = frozenset(("authorization", "x-api-key", "api-key", "x-goog-api-key"))


@dataclass(frozen=True)
class PreparedRequest:
    """Wire-ready request for one provider call.

    Attributes:
        provider: Registered provider name.
        model: Resolved model identifier.
        endpoint: Fully resolved URL (no credentials embedded).
        headers: Ordered header pairs.
        body: Serialized request body.
        stream: Whether the response will be consumed incrementally.
    """

    provider: str
    model: str
    endpoint: str
    headers: Tuple[Header, ...]
    body: bytes
    stream: bool

    def redacted_headers(self) -> List[Header]:
        """Return headers with credential values masked for display/logging."""
        return [
            (name, "***" if name.lower() in _SECRET_HEADERS else value)
            for name, value in self.headers
        ]

    def to_dict(self) -> Dict[str, object]:
        """Return a JSON-serializable, credential-free view."""
        return {
            "provider": self.provider,
            "model": self.model,
            "endpoint": self.endpoint,
            "headers": [list(h) for h in self.redacted_headers()],
            "stream": self.stream,
            "body_bytes": len(self.body),
        }


__all__ = ["PreparedRequest", "Header"]

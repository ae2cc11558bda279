"""CapabilitySet base class (single-class module).

Defines the per-provider contract: endpoint resolution, header/body builders
and the response, stream-event and error parsers. One concrete subclass is
implemented per provider family and instantiated once at registration time.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, ClassVar, List, Literal, Optional, Sequence
from urllib.parse import quote

from ..errors import ErrorCode, ProviderError, error_message_from
from ..models import Header, Message

StreamFraming = Literal["sse", "ndjson"]

JSON_CONTENT_TYPE = "application/json"


def encode_json(payload: Any) -> bytes:
    """Serialize a request body the same way for every provider."""
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


class CapabilitySet(ABC):
    """Provider capability contract.

    Class attributes describe the provider; instances are stateless so a
    single instance can serve every in-flight request concurrently.

    Attributes:
        name: Registered provider name.
        default_model: Model used when no override is configured.
        default_endpoint: Endpoint (or ``{model}`` template) used when no
            override is configured.
        api_key_env_var: Environment variable holding the credential, or
            ``None`` for providers needing no auth.
        requires_api_key: Whether header construction fails with
            ``AUTH_MISSING`` when no key resolves.
        api_key_query_param: Query parameter carrying the key for providers
            that authenticate through the URL; ``None`` for header auth.
        stream_framing: ``"sse"`` for ``data:``-prefixed lines, ``"ndjson"``
            for one JSON document per line.
    """

    __slots__ = ()

    name: ClassVar[str]
    default_model: ClassVar[str]
    default_endpoint: ClassVar[str]
    api_key_env_var: ClassVar[Optional[str]] = None
    requires_api_key: ClassVar[bool] = True
    api_key_query_param: ClassVar[Optional[str]] = None
    stream_framing: ClassVar[StreamFraming] = "sse"

    # ----- endpoint & auth -----
    def resolve_endpoint(self, endpoint: str, model: str, *, stream: bool) -> str:
        """Substitute ``{model}`` in templated endpoints; otherwise return as-is."""
        if "{model}" in endpoint:
            return endpoint.replace("{model}", quote(model, safe="/:._-"))
        return endpoint

    def require_api_key(self, api_key: Optional[str]) -> None:
        """Raise ``AUTH_MISSING`` when this provider needs a key and has none."""
        if self.requires_api_key and not api_key:
            hint = f"set {self.api_key_env_var}" if self.api_key_env_var else "configure api_key"
            raise ProviderError(
                code=ErrorCode.AUTH_MISSING,
                message=f"No API key configured for provider '{self.name}' ({hint})",
                provider=self.name,
            )

    # ----- request construction -----
    @abstractmethod
    def build_headers(self, model: str, messages: Sequence[Message], api_key: Optional[str]) -> List[Header]:
        """Return the ordered header list; raise ``AUTH_MISSING`` if needed."""

    @abstractmethod
    def build_body(self, model: str, messages: Sequence[Message], stream: bool) -> bytes:
        """Return the serialized request body."""

    # ----- response parsing -----
    def parse_response(self, payload: Any) -> Optional[str]:
        """Extract text from a whole (non-streamed) response payload.

        Returning ``None`` lets the decoder fall back to common field names.
        """
        return None

    @abstractmethod
    def parse_stream_event(self, payload: Any) -> Optional[str]:
        """Extract the displayable delta from one stream event, if any."""

    def parse_error(self, payload: Any) -> Optional[str]:
        """Return the provider error message carried by ``payload``, if any."""
        return error_message_from(payload)

    def is_stream_sentinel(self, data: str) -> bool:
        """Whether a stream payload is an end marker rather than JSON."""
        return False

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return f"{type(self).__name__}(name={self.name!r})"


__all__ = ["CapabilitySet", "StreamFraming", "JSON_CONTENT_TYPE", "encode_json"]

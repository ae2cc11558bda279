"""chat_relay package

Client-side relay that sends conversations to several LLM providers and
delivers their (streamed or buffered) responses as ordered text chunks plus
exactly one terminal outcome.

Purpose:
    Provide a minimal, stable API for external consumption (packaging is
    configured via the repository root ``pyproject.toml``). Callers create a
    session and dispatch against a sink, for example
    ``create_session().dispatch(sink, "openai", messages)``.

Public API (re-exported):
    - Version: ``__version__``
    - Exceptions: :class:`ProviderError`, :class:`ErrorCode`
    - Session: :class:`RelaySession`, :func:`create_session`
    - Sinks: :class:`CollectingSink`, :class:`StreamWriterSink`
    - Registry: :class:`ProviderRegistry`, :class:`ProviderFactory`,
      :func:`build_default_registry`, :class:`ProviderOverrides`
"""

from typing import Any, Mapping, Optional

from .base.errors import ErrorCode, ProviderError
from .base.dto import ProviderOverrides
from .base.factory import ProviderFactory, build_default_registry
from .base.models import Message, RequestOutcome
from .base.registry import ProviderRegistry
from .base.streaming import StreamContext, TerminalState
from .base.transport import create_transport
from .service.session import RelaySession
from .service.sinks import CollectingSink, StreamWriterSink

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Exceptions
    "ProviderError",
    "ErrorCode",
    # Models
    "Message",
    "RequestOutcome",
    "StreamContext",
    "TerminalState",
    # Registry
    "ProviderOverrides",
    "ProviderFactory",
    "ProviderRegistry",
    "build_default_registry",
    # Session
    "RelaySession",
    "create_session",
    "CollectingSink",
    "StreamWriterSink",
]


def create_session(
    transport: str = "curl",
    *,
    overrides: Optional[Mapping[str, Any]] = None,
) -> RelaySession:
    """Return a session over the default registry and the named transport.

    Parameters:
        transport: ``"curl"`` (subprocess, default) or ``"httpx"`` (in-process).
        overrides: Optional per-provider explicit configuration, e.g.
            ``{"ollama": {"endpoint": "http://gpu-box:11434/api/chat"}}``.
    """
    return RelaySession(build_default_registry(overrides), create_transport(transport))

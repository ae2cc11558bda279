"""
Relay Base Package

Exports the provider-agnostic core: contracts, DTOs, the provider registry
and factory, the request builder and the execution engine.

Layering:
- Interfaces: capability set, response sink and transport contracts
- Models (DTOs): immutable request/outcome objects
- Registry/Factory: capability sets by canonical name
- Streaming: per-request state machine, framing and chunk decoding
- Transport: curl subprocess and in-process httpx exchanges
"""

from .errors import ErrorCode, ProviderError
from .dto import ProviderOverrides
from .interfaces import (
    CapabilitySet,
    ResponseSink,
    Transport,
    TransportExit,
    TransportHandle,
    TransportRequest,
)
from .models import Message, PreparedRequest, RequestDescriptor, RequestOutcome, Role
from .registry import ProviderRegistry
from .request_builder import RequestBuilder
from .factory import ProviderFactory, build_default_registry
from .timeouts import TimeoutConfig, get_timeout_config
from .streaming import EngineState, ExecutionEngine, StreamContext, TerminalState
from .transport import CurlTransport, HttpxTransport, create_transport

__all__ = [
    # Errors
    "ErrorCode",
    "ProviderError",
    # Models
    "Role",
    "Message",
    "RequestDescriptor",
    "PreparedRequest",
    "RequestOutcome",
    "ProviderOverrides",
    # Interfaces
    "CapabilitySet",
    "ResponseSink",
    "Transport",
    "TransportHandle",
    "TransportRequest",
    "TransportExit",
    # Registry & Factory
    "ProviderRegistry",
    "RequestBuilder",
    "ProviderFactory",
    "build_default_registry",
    # Timeouts
    "TimeoutConfig",
    "get_timeout_config",
    # Execution
    "EngineState",
    "ExecutionEngine",
    "StreamContext",
    "TerminalState",
    "CurlTransport",
    "HttpxTransport",
    "create_transport",
]

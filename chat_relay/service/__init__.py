"""Service layer: session manager, ready-made sinks and the CLI."""

from .session import RelaySession
from .sinks import CollectingSink, StreamWriterSink

__all__ = ["RelaySession", "CollectingSink", "StreamWriterSink"]

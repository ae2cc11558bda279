"""
Provider-agnostic request/response models public surface.

Re-exports the one-class-per-file implementations under
``chat_relay.base.models_parts``.
"""

from .models_parts.message import Message, Role, ROLES
from .models_parts.request_descriptor import RequestDescriptor, MessageLike, coerce_messages
from .models_parts.prepared_request import PreparedRequest, Header
from .models_parts.outcome import RequestOutcome

__all__ = [
    "Message",
    "Role",
    "ROLES",
    "RequestDescriptor",
    "MessageLike",
    "coerce_messages",
    "PreparedRequest",
    "Header",
    "RequestOutcome",
]

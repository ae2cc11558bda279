"""One-class-per-file request/response models (see ``chat_relay.base.models``)."""

from .message import Message, Role, ROLES
from .request_descriptor import RequestDescriptor, MessageLike, coerce_messages
from .prepared_request import PreparedRequest, Header
from .outcome import RequestOutcome

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

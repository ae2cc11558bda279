"""
RequestDescriptor DTO: what the caller asked for, before any wire encoding.

Constructed once per dispatch with the model already resolved; immutable for
the lifetime of the request.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Tuple, Union

from .message import Message

MessageLike = Union[Message, Mapping[str, str]]


def coerce_messages(messages: Iterable[MessageLike]) -> Tuple[Message, ...]:
    """Normalize ``Message`` instances or ``{"role", "content"}`` mappings."""
    out = []
    for m in messages:
        if isinstance(m, Message):
            out.append(m)
        else:
            out.append(Message(role=m["role"], content=m["content"]))  # type: ignore[arg-type]
    return tuple(out)


@dataclass(frozen=True)
class RequestDescriptor:
    """Normalized description of one conversational request.

    Attributes:
        provider: Registered provider name (e.g. ``"openai"``).
        model: Resolved model identifier.
        messages: Ordered conversation history.
        stream: Whether incremental delivery was requested.
    """

    provider: str
    model: str
    messages: Tuple[Message, ...]
    stream: bool = True

    @classmethod
    def create(
        cls,
        provider: str,
        model: str,
        messages: Iterable[MessageLike],
        *,
        stream: bool = True,
    ) -> "RequestDescriptor":
        return cls(
            provider=(provider or "").strip().lower(),
            model=model,
            messages=coerce_messages(messages),
            stream=bool(stream),
        )


__all__ = ["RequestDescriptor", "MessageLike", "coerce_messages"]

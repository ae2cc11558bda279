"""
Message DTO used across capability sets.

Defines the `Message` dataclass and the `Role` literal representing the sender
role. Capability sets map these into their provider-specific message arrays
(including role renaming, e.g. Gemini's ``model`` role).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Tuple

# Message roles accepted by every provider family.
Role = Literal["system", "user", "assistant"]
ROLES: Tuple[str, ...] = ("system", "user", "assistant")


@dataclass(frozen=True)
class Message:
    """A single conversational turn.

    Attributes:
        role: ``"system"``, ``"user"`` or ``"assistant"``.
        content: Plain message text.
    """

    role: Role
    content: str

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"unsupported message role {self.role!r}; expected one of {ROLES}")
        if not isinstance(self.content, str):
            raise TypeError("message content must be a string")


__all__ = [
    "Message",
    "Role",
    "ROLES",
]

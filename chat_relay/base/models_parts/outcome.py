"""
RequestOutcome: the terminal result of one request.

Exactly one of three shapes: ``{text}`` on success, ``{error}`` on failure,
``{cancelled}`` on cancellation.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..errors import ErrorCode, ProviderError


@dataclass(frozen=True)
class RequestOutcome:
    """Terminal outcome delivered once per request."""

    text: Optional[str] = None
    error: Optional[ProviderError] = None
    cancelled: bool = False

    @classmethod
    def completed(cls, text: str) -> "RequestOutcome":
        return cls(text=text)

    @classmethod
    def failed(cls, error: ProviderError) -> "RequestOutcome":
        return cls(error=error)

    @classmethod
    def cancellation(cls) -> "RequestOutcome":
        return cls(cancelled=True)

    @property
    def ok(self) -> bool:
        return self.error is None and not self.cancelled

    @property
    def error_message(self) -> Optional[str]:
        return self.error.message if self.error is not None else None

    @property
    def code(self) -> Optional[ErrorCode]:
        if self.cancelled:
            return ErrorCode.CANCELLED
        return self.error.code if self.error is not None else None

    def to_dict(self) -> Dict[str, Any]:
        if self.cancelled:
            return {"cancelled": True}
        if self.error is not None:
            return {"errorMessage": self.error.message, "code": self.error.code.value}
        return {"fullText": self.text}


__all__ = ["RequestOutcome"]

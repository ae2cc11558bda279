"""Errors parts package public surface.

Re-exports individual error taxonomy components for optional direct imports.
Prefer importing from `chat_relay.base.errors` for the stable surface.
"""

from .error_code import ErrorCode
from .provider_error import ProviderError
from .classification import (
    classify_exception,
    classify_http_status,
    classify_transport_exit,
    compose_failure_message,
    describe_exit_status,
    error_message_from,
    extract_body_error,
)

__all__ = [
    "ErrorCode",
    "ProviderError",
    "classify_exception",
    "classify_http_status",
    "classify_transport_exit",
    "compose_failure_message",
    "describe_exit_status",
    "error_message_from",
    "extract_body_error",
]

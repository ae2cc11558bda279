"""Unified error taxonomy public surface.

This module re-exports the one-class-per-file implementations under
``chat_relay.base.errors_parts`` to maintain a stable import path.
"""

from .errors_parts.error_code import ErrorCode
from .errors_parts.provider_error import ProviderError
from .errors_parts.classification import (
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

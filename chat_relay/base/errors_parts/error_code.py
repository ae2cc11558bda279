"""
Normalized error codes (taxonomy).

Defines the `ErrorCode` enumeration used across the registry, request builder,
execution engine and error classifier. Values are lowercase snake_case and are
considered a stable public contract for logging.
"""
from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Enumerated normalized error codes representing failure categories."""

    # Dispatch-time failures
    UNKNOWN_PROVIDER = "unknown_provider"
    AUTH_MISSING = "auth_missing"
    REQUEST_IN_PROGRESS = "request_in_progress"
    TRANSPORT_UNAVAILABLE = "transport_unavailable"

    # Response-time failures
    MALFORMED_PAYLOAD = "malformed_payload"
    EMPTY_RESPONSE = "empty_response"
    TRANSPORT_FAILURE = "transport_failure"
    PROVIDER_ERROR = "provider_error"

    # HTTP status sub-classification
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    UNAVAILABLE = "unavailable"

    # Not a failure: normal terminal state
    CANCELLED = "cancelled"

    INTERNAL = "internal"
    UNKNOWN = "unknown"


__all__ = ["ErrorCode"]

"""
Error classification: transport exits, HTTP statuses and payload errors.

This is the single place that turns raw failure signals into the one
human-readable message delivered to a sink's error channel:

- transport exit statuses (curl numbering; the in-process transport maps its
  exceptions onto the same numbers) are translated through ``EXIT_CAUSES``;
- HTTP statuses seen in the response header block map to ``ErrorCode`` values
  through ``_HTTP_STATUS_MAP``;
- structured error objects are recovered from the accumulated response body
  (``error.message`` / ``error`` / ``message`` shapes), with a guarded raw
  text fallback for bodies that are not JSON.

The combined message is ``cause``, then the transport's diagnostic stream,
then the provider error text, one per line.
"""
from __future__ import annotations

import asyncio
import json
import re
from typing import Any, Dict, Optional, Tuple, Union

from .error_code import ErrorCode
from .provider_error import ProviderError

# exit status -> (cause text, code)
EXIT_CAUSES: Dict[int, Tuple[str, ErrorCode]] = {
    6: ("Could not resolve host (DNS resolution failed)", ErrorCode.TRANSPORT_FAILURE),
    7: ("Failed to connect to host", ErrorCode.TRANSPORT_FAILURE),
    22: ("HTTP error returned by server (malformed request or rejected)", ErrorCode.TRANSPORT_FAILURE),
    28: ("Operation timed out", ErrorCode.TIMEOUT),
    35: ("TLS/SSL handshake failed", ErrorCode.TRANSPORT_FAILURE),
    51: ("TLS/SSL peer certificate could not be verified", ErrorCode.TRANSPORT_FAILURE),
    52: ("Empty response from server", ErrorCode.EMPTY_RESPONSE),
    56: ("Failure receiving network data", ErrorCode.TRANSPORT_FAILURE),
    58: ("TLS/SSL local certificate problem", ErrorCode.TRANSPORT_FAILURE),
    60: ("TLS/SSL certificate problem", ErrorCode.TRANSPORT_FAILURE),
}

_HTTP_STATUS_MAP: Dict[int, ErrorCode] = {
    400: ErrorCode.VALIDATION,
    401: ErrorCode.AUTH,
    403: ErrorCode.AUTH,
    404: ErrorCode.NOT_FOUND,
    408: ErrorCode.TIMEOUT,
    422: ErrorCode.VALIDATION,
    429: ErrorCode.RATE_LIMIT,
    500: ErrorCode.SERVER_ERROR,
    502: ErrorCode.UNAVAILABLE,
    503: ErrorCode.UNAVAILABLE,
    504: ErrorCode.TIMEOUT,
}

# Raw (non-JSON) bodies are only echoed back when short and error-shaped.
RAW_BODY_LIMIT = 500
_ERRORISH = re.compile(r"\b(error|invalid|denied|unauthori[sz]ed|forbidden|not found|exceeded|failed)\b", re.I)

BodyLike = Union[bytes, bytearray, str, None]


def status_to_code(status: int) -> ErrorCode:
    """Map an HTTP status to a normalized code (ranges for unmapped values)."""
    if status in _HTTP_STATUS_MAP:
        return _HTTP_STATUS_MAP[status]
    if 400 <= status < 500:
        return ErrorCode.VALIDATION
    if status >= 500:
        return ErrorCode.SERVER_ERROR
    return ErrorCode.UNKNOWN


def describe_exit_status(returncode: int, signal_name: Optional[str] = None) -> str:
    """Return the human-readable cause for a transport exit status."""
    if returncode in EXIT_CAUSES:
        return f"{EXIT_CAUSES[returncode][0]} (transport exit {returncode})"
    if signal_name:
        return f"Transport terminated by signal {signal_name}"
    return f"Transport exited with status {returncode}"


def error_message_from(payload: Any) -> Optional[str]:
    """Pull an error message out of the common structured error shapes.

    Tries ``{"error": {"message": ...}}``, ``{"error": "..."}`` and a
    top-level ``{"message": ...}`` only when the payload also looks like an
    error envelope (``type == "error"`` or a ``status``/``code`` field). A
    single-element list wrapper is unwrapped first.
    """
    if isinstance(payload, list) and payload:
        payload = payload[0]
    if not isinstance(payload, dict):
        return None
    err = payload.get("error")
    if isinstance(err, dict):
        msg = err.get("message") or err.get("msg")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()
        kind = err.get("type") or err.get("status") or err.get("code")
        return str(kind) if kind else json.dumps(err, ensure_ascii=False)
    if isinstance(err, str) and err.strip():
        return err.strip()
    msg = payload.get("message")
    if isinstance(msg, str) and msg.strip() and (
        payload.get("type") == "error" or "status" in payload or "code" in payload
    ):
        return msg.strip()
    return None


def _decode(body: BodyLike) -> str:
    if body is None:
        return ""
    if isinstance(body, (bytes, bytearray)):
        return bytes(body).decode("utf-8", errors="replace")
    return body


def extract_body_error(body: BodyLike) -> Optional[str]:
    """Recover a provider error message from an accumulated response body.

    Structured bodies go through :func:`error_message_from`. Non-JSON bodies
    are returned verbatim only when short and lexically error-like; anything
    else yields ``None`` so large HTML pages never end up in a message.
    """
    text = _decode(body).strip()
    if not text:
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        if len(text) <= RAW_BODY_LIMIT and _ERRORISH.search(text):
            return text
        return None
    return error_message_from(data)


def compose_failure_message(
    cause: str,
    *,
    diagnostics: Optional[str] = None,
    body_error: Optional[str] = None,
) -> str:
    """Combine cause, transport diagnostics and provider error text."""
    lines = [cause.strip()]
    diag = (diagnostics or "").strip()
    if diag:
        lines.append(f"Transport diagnostics: {diag}")
    if body_error:
        lines.append(f"Provider error: {body_error}")
    return "\n".join(lines)


def classify_transport_exit(
    returncode: int,
    *,
    provider: str,
    model: Optional[str] = None,
    stderr: Optional[str] = None,
    body: BodyLike = None,
    signal_name: Optional[str] = None,
) -> ProviderError:
    """Build the terminal error for a non-zero, non-cancellation exit."""
    code = EXIT_CAUSES.get(returncode, ("", ErrorCode.TRANSPORT_FAILURE))[1]
    message = compose_failure_message(
        describe_exit_status(returncode, signal_name),
        diagnostics=stderr,
        body_error=extract_body_error(body),
    )
    return ProviderError(
        code=code,
        message=message,
        provider=provider,
        model=model,
        retryable=code in (ErrorCode.TIMEOUT, ErrorCode.EMPTY_RESPONSE) or returncode in (7, 56),
    )


def classify_http_status(
    status: int,
    *,
    provider: str,
    model: Optional[str] = None,
    reason: Optional[str] = None,
    body: BodyLike = None,
    stderr: Optional[str] = None,
) -> ProviderError:
    """Build the terminal error for a 4xx/5xx response with a zero exit."""
    code = status_to_code(status)
    cause = f"HTTP {status}" + (f" {reason.strip()}" if reason and reason.strip() else "")
    body_error = extract_body_error(body)
    if body_error is None:
        text = _decode(body).strip()
        if text and len(text) <= RAW_BODY_LIMIT:
            body_error = text
    return ProviderError(
        code=code,
        message=compose_failure_message(
            f"{cause} from {provider}", diagnostics=stderr, body_error=body_error
        ),
        provider=provider,
        model=model,
        retryable=code in (ErrorCode.RATE_LIMIT, ErrorCode.UNAVAILABLE, ErrorCode.TIMEOUT),
    )


def _heuristic_from_message(msg: str) -> Optional[ErrorCode]:  # pragma: no cover - simple mapping
    """Substring heuristic mapping for exceptions without structure."""
    PATTERN_GROUPS = (
        (ErrorCode.TIMEOUT, ("timeout", "timed out")),
        (ErrorCode.AUTH, ("api key", "unauthorized", "forbidden")),
        (ErrorCode.MALFORMED_PAYLOAD, ("malformed", "decode", "expecting value")),
    )
    for code, patterns in PATTERN_GROUPS:
        if any(p in msg for p in patterns):
            return code
    return None


def classify_exception(exc: BaseException) -> ErrorCode:
    """Classify an exception into a normalized :class:`ErrorCode`.

    Precedence:
        1. ProviderError passthrough.
        2. Timeout exceptions (sync/async).
        3. ``status_code`` attribute mapping.
        4. Substring heuristics.
        5. ``INTERNAL`` fallback (engine faults).
    """
    if isinstance(exc, ProviderError):
        return exc.code
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError)):
        return ErrorCode.TIMEOUT
    status = getattr(exc, "status_code", None)
    if isinstance(status, int) and 400 <= status < 600:
        return status_to_code(status)
    code = _heuristic_from_message(str(exc).lower())
    return code if code is not None else ErrorCode.INTERNAL


__all__ = [
    "EXIT_CAUSES",
    "RAW_BODY_LIMIT",
    "status_to_code",
    "describe_exit_status",
    "error_message_from",
    "extract_body_error",
    "compose_failure_message",
    "classify_transport_exit",
    "classify_http_status",
    "classify_exception",
]

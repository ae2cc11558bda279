"""Formatter and correlation context used by ``chat_relay.base.logging``."""

from .json_formatter import JsonFormatter, ISO
from .logging_context import LogContext

__all__ = ["JsonFormatter", "ISO", "LogContext"]

"""
Anthropic provider package.

Exports:
- ClaudeCapabilities: Messages API capability set, registered as ``claude``.
"""

from .capabilities import ClaudeCapabilities

__all__ = ["ClaudeCapabilities"]

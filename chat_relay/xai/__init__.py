"""xAI (Grok) provider package."""

from .capabilities import XAICapabilities

__all__ = ["XAICapabilities"]

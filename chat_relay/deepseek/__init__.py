"""DeepSeek provider package."""

from .capabilities import DeepSeekCapabilities

__all__ = ["DeepSeekCapabilities"]

"""OpenRouter provider package."""

from .capabilities import OpenRouterCapabilities

__all__ = ["OpenRouterCapabilities"]

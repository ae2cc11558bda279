"""Google Gemini provider package."""

from .capabilities import GeminiCapabilities

__all__ = ["GeminiCapabilities"]

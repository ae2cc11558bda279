"""Ollama provider package."""

from .capabilities import OllamaCapabilities

__all__ = ["OllamaCapabilities"]

"""
OpenAI provider package.

Exports:
- OpenAICapabilities: capability set for OpenAI-style chat completions,
  also the base of the DeepSeek, OpenRouter and xAI capability sets.
"""

from .capabilities import DONE_SENTINEL, OpenAICapabilities

__all__ = ["OpenAICapabilities", "DONE_SENTINEL"]

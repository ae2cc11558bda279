"""OpenRouter capability set.

OpenRouter speaks the OpenAI chat-completions dialect. It interleaves SSE
comment lines (``: OPENROUTER PROCESSING``) while a model warms up; those
never start with ``data:`` and are dropped by the framing layer.
"""

from __future__ import annotations

from ..config.defaults import OPENROUTER_DEFAULT_ENDPOINT, OPENROUTER_DEFAULT_MODEL
from ..openai.capabilities import OpenAICapabilities


class OpenRouterCapabilities(OpenAICapabilities):
    __slots__ = ()

    name = "openrouter"
    default_model = OPENROUTER_DEFAULT_MODEL
    default_endpoint = OPENROUTER_DEFAULT_ENDPOINT
    api_key_env_var = "OPENROUTER_API_KEY"


__all__ = ["OpenRouterCapabilities"]

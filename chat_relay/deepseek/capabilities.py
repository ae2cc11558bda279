"""DeepSeek capability set (OpenAI-compatible wire format)."""

from __future__ import annotations

from ..config.defaults import DEEPSEEK_DEFAULT_ENDPOINT, DEEPSEEK_DEFAULT_MODEL
from ..openai.capabilities import OpenAICapabilities


class DeepSeekCapabilities(OpenAICapabilities):
    __slots__ = ()

    name = "deepseek"
    default_model = DEEPSEEK_DEFAULT_MODEL
    default_endpoint = DEEPSEEK_DEFAULT_ENDPOINT
    api_key_env_var = "DEEPSEEK_API_KEY"


__all__ = ["DeepSeekCapabilities"]

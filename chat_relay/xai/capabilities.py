"""xAI (Grok) capability set (OpenAI-compatible wire format)."""

from __future__ import annotations

from ..config.defaults import XAI_DEFAULT_ENDPOINT, XAI_DEFAULT_MODEL
from ..openai.capabilities import OpenAICapabilities


class XAICapabilities(OpenAICapabilities):
    __slots__ = ()

    name = "xai"
    default_model = XAI_DEFAULT_MODEL
    default_endpoint = XAI_DEFAULT_ENDPOINT
    api_key_env_var = "XAI_API_KEY"


__all__ = ["XAICapabilities"]

"""Provider factory utilities.

Purpose
-------
Centralize creation of capability sets by canonical name and assemble the
default :class:`ProviderRegistry`. Provider modules are imported lazily with
``importlib`` so importing the core never pulls in every provider.

Failure modes
-------------
- Unknown names, import failures and missing classes raise
  ``ProviderError`` with ``ErrorCode.UNKNOWN_PROVIDER`` and an actionable
  message.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, Mapping, Optional, Tuple, Type

from .errors import ErrorCode, ProviderError
from .interfaces import CapabilitySet
from .registry import OverridesLike, ProviderRegistry


class ProviderFactory:
    """Create capability sets based on a canonical name (e.g. ``"openai"``)."""

    # canonical name -> import path and class name
    _PROVIDERS: Dict[str, Dict[str, str]] = {
        "openai": {"module": "chat_relay.openai.capabilities", "class": "OpenAICapabilities"},
        "deepseek": {"module": "chat_relay.deepseek.capabilities", "class": "DeepSeekCapabilities"},
        "openrouter": {"module": "chat_relay.openrouter.capabilities", "class": "OpenRouterCapabilities"},
        "xai": {"module": "chat_relay.xai.capabilities", "class": "XAICapabilities"},
        "claude": {"module": "chat_relay.anthropic.capabilities", "class": "ClaudeCapabilities"},
        "ollama": {"module": "chat_relay.ollama.capabilities", "class": "OllamaCapabilities"},
        "gemini": {"module": "chat_relay.gemini.capabilities", "class": "GeminiCapabilities"},
    }

    @classmethod
    def create(cls, provider: str) -> CapabilitySet:
        """Instantiate the capability set registered for ``provider``.

        Raises
        ------
        ProviderError
            ``UNKNOWN_PROVIDER`` if the name is unknown, the module fails to
            import or the class is missing.
        """
        name = (provider or "").lower().strip()
        spec = cls._PROVIDERS.get(name)
        if not spec:
            raise ProviderError(
                code=ErrorCode.UNKNOWN_PROVIDER,
                message=f"Unknown provider '{provider}'",
                provider=name or str(provider),
            )

        module_path, class_name = spec["module"], spec["class"]
        try:
            mod = import_module(module_path)
        except ImportError as exc:  # pragma: no cover - packaging failure
            raise ProviderError(
                code=ErrorCode.UNKNOWN_PROVIDER,
                message=f"Failed to import module '{module_path}' for provider '{provider}': {exc}",
                provider=name,
            ) from exc

        try:
            klass: Type[CapabilitySet] = getattr(mod, class_name)
        except AttributeError as exc:
            raise ProviderError(
                code=ErrorCode.UNKNOWN_PROVIDER,
                message=f"Capability class '{class_name}' not found in '{module_path}' for provider '{provider}'",
                provider=name,
            ) from exc
        return klass()

    @classmethod
    def supported(cls) -> Tuple[str, ...]:
        """Return the supported canonical provider names in registration order."""
        return tuple(cls._PROVIDERS.keys())


def build_default_registry(
    overrides: Optional[Mapping[str, OverridesLike]] = None,
    **registry_kwargs: Any,
) -> ProviderRegistry:
    """Return a registry holding every supported provider."""
    registry = ProviderRegistry(overrides, **registry_kwargs)
    for name in ProviderFactory.supported():
        registry.register(ProviderFactory.create(name), name)
    return registry


__all__ = ["ProviderFactory", "build_default_registry"]

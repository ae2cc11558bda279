"""Provider registry: name-keyed table of capability sets.

Purpose
-------
Hold exactly one :class:`CapabilitySet` per provider name and answer the
resolution questions the request builder asks: which endpoint, which model
and which credential a given provider should use.

Resolution precedence
---------------------
- model: explicit override (in-code, config file or ``<PROVIDER>_MODEL``),
  then the capability set default.
- endpoint: explicit override, then the capability set default; templates
  containing ``{model}`` are substituted by the capability set.
- api key: explicit config value (``api_key`` from overrides or the config
  file), then the environment variable named by the capability set (plus
  aliases), then absent.

Concurrency
-----------
Registration happens at startup. Lookups take no lock: entries are replaced
wholesale by ``register`` and never mutated in place.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from ..config import get_provider_config
from ..config.env import is_placeholder, resolve_env_key
from .dto import ProviderOverrides
from .errors import ErrorCode, ProviderError
from .interfaces import CapabilitySet
from .logging import get_logger, log_event

ConfigSource = Callable[..., Dict[str, Any]]
OverridesLike = Union[ProviderOverrides, Mapping[str, Any]]


def _normalize(name: str) -> str:
    return (name or "").strip().lower()


class ProviderRegistry:
    """Name-keyed table of provider capability sets.

    Parameters
    ----------
    overrides:
        Optional mapping of provider name to :class:`ProviderOverrides` (or a
        plain mapping validated into one). Overrides take precedence over the
        config file and environment layers.
    config_source:
        Callable ``(provider, overrides) -> dict`` returning the merged
        configuration; defaults to :func:`chat_relay.config.get_provider_config`.
    """

    def __init__(
        self,
        overrides: Optional[Mapping[str, OverridesLike]] = None,
        *,
        config_source: ConfigSource = get_provider_config,
    ) -> None:
        self._capabilities: Dict[str, CapabilitySet] = {}
        self._overrides: Dict[str, ProviderOverrides] = {
            _normalize(name): ProviderOverrides.coerce(value) for name, value in (overrides or {}).items()
        }
        self._config_source = config_source
        self._logger = get_logger("chat_relay.registry")

    # ----- registration -----
    def register(self, capability: CapabilitySet, name: Optional[str] = None) -> None:
        """Register ``capability`` under ``name`` (default: its own name).

        An existing registration for the same name is replaced.
        """
        key = _normalize(name or capability.name)
        replaced = key in self._capabilities
        self._capabilities[key] = capability
        log_event(
            self._logger,
            "registry.register",
            provider=key,
            capability=type(capability).__name__,
            replaced=replaced or None,
        )

    def set_overrides(self, name: str, overrides: Optional[OverridesLike]) -> None:
        """Replace the explicit overrides for ``name`` (``None`` clears them)."""
        key = _normalize(name)
        if overrides is None:
            self._overrides.pop(key, None)
        else:
            self._overrides[key] = ProviderOverrides.coerce(overrides)

    # ----- lookup -----
    def lookup(self, name: str) -> Optional[CapabilitySet]:
        return self._capabilities.get(_normalize(name))

    def require(self, name: str) -> CapabilitySet:
        """Return the capability set for ``name`` or raise ``UNKNOWN_PROVIDER``."""
        capability = self.lookup(name)
        if capability is None:
            known = ", ".join(self.names()) or "none"
            raise ProviderError(
                code=ErrorCode.UNKNOWN_PROVIDER,
                message=f"Unknown provider '{name}' (registered: {known})",
                provider=_normalize(name) or str(name),
            )
        return capability

    def names(self) -> Tuple[str, ...]:
        return tuple(self._capabilities)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and _normalize(name) in self._capabilities

    def __len__(self) -> int:
        return len(self._capabilities)

    # ----- resolution -----
    def config_for(self, name: str) -> Dict[str, Any]:
        """Return the merged configuration for ``name`` (file, env, overrides)."""
        key = _normalize(name)
        overrides = self._overrides.get(key)
        return self._config_source(key, overrides.as_config() if overrides else None)

    def resolve_model(self, name: str) -> str:
        capability = self.require(name)
        model = self.config_for(name).get("model")
        if isinstance(model, str) and model.strip():
            return model.strip()
        return capability.default_model

    def resolve_endpoint(self, name: str, model: Optional[str] = None, *, stream: bool = False) -> str:
        """Return the endpoint for ``name`` with any ``{model}`` template filled.

        Credentials carried as query parameters are never added here.
        """
        capability = self.require(name)
        endpoint = self.config_for(name).get("endpoint")
        if not (isinstance(endpoint, str) and endpoint.strip()):
            endpoint = capability.default_endpoint
        return capability.resolve_endpoint(endpoint.strip(), model or self.resolve_model(name), stream=stream)

    def resolve_api_key(self, name: str) -> Optional[str]:
        capability = self.require(name)
        explicit = self.config_for(name).get("api_key")
        if isinstance(explicit, str) and explicit.strip() and not is_placeholder(explicit):
            return explicit.strip()
        value, _ = resolve_env_key(capability.api_key_env_var)
        return value

    def describe(self) -> Dict[str, Dict[str, Any]]:
        """Return resolved model/endpoint per provider (no credentials)."""
        out: Dict[str, Dict[str, Any]] = {}
        for key, capability in self._capabilities.items():
            model = self.resolve_model(key)
            out[key] = {
                "model": model,
                "endpoint": self.resolve_endpoint(key, model),
                "api_key_env_var": capability.api_key_env_var,
                "stream_framing": capability.stream_framing,
            }
        return out


__all__ = ["ProviderRegistry"]

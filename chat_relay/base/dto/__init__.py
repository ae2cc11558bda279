"""Pydantic-validated DTOs accepted at the configuration boundary."""

from .provider_overrides import ProviderOverrides

__all__ = ["ProviderOverrides"]

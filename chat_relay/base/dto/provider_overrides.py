"""Typed override object for per-provider configuration.

Purpose
-------
Validate the explicit, in-code configuration a caller hands to the registry
(model, API key, endpoint) before it is merged over the config file and
environment layers.

External dependencies
---------------------
- Pydantic v2 ``BaseModel`` for validation and ``.model_dump()`` convenience.

Failure modes & side effects
----------------------------
- Pure data container: no I/O. ``pydantic.ValidationError`` is raised for
  wrongly typed inputs or blank strings.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProviderOverrides(BaseModel):
    """Explicit configuration for one provider.

    Attributes
    ----------
    model:
        Model identifier to use instead of the capability set default.
    api_key:
        Credential taking precedence over the provider's environment variable.
    endpoint:
        Endpoint URL (or template containing ``{model}``) replacing the
        capability set default, e.g. a proxy or self-hosted gateway.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    model: Optional[str] = None
    api_key: Optional[str] = Field(default=None, repr=False)
    endpoint: Optional[str] = None

    @field_validator("model", "api_key", "endpoint")
    @classmethod
    def _strip_non_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @classmethod
    def coerce(cls, value: Union["ProviderOverrides", Mapping[str, Any], None]) -> "ProviderOverrides":
        """Accept an instance, a plain mapping or ``None``."""
        if isinstance(value, cls):
            return value
        return cls.model_validate(dict(value or {}))

    def as_config(self) -> Dict[str, Any]:
        """Return only the fields that were actually set."""
        return self.model_dump(exclude_none=True)


__all__ = ["ProviderOverrides"]

"""Request builder: descriptor in, wire-ready request out."""

from __future__ import annotations

from .models import PreparedRequest, RequestDescriptor
from .registry import ProviderRegistry


class RequestBuilder:
    """Turn a :class:`RequestDescriptor` into a :class:`PreparedRequest`.

    Raises ``UNKNOWN_PROVIDER`` when the provider is not registered and
    propagates ``AUTH_MISSING`` from the capability set's header builder.
    The endpoint is returned without query-string credentials.
    """

    def __init__(self, registry: ProviderRegistry) -> None:
        self.registry = registry

    def build(self, descriptor: RequestDescriptor) -> PreparedRequest:
        capability = self.registry.require(descriptor.provider)
        model = descriptor.model or self.registry.resolve_model(descriptor.provider)
        endpoint = self.registry.resolve_endpoint(descriptor.provider, model, stream=descriptor.stream)
        api_key = self.registry.resolve_api_key(descriptor.provider)
        headers = capability.build_headers(model, descriptor.messages, api_key)
        body = capability.build_body(model, descriptor.messages, descriptor.stream)
        return PreparedRequest(
            provider=capability.name,
            model=model,
            endpoint=endpoint,
            headers=tuple(headers),
            body=body,
            stream=descriptor.stream,
        )


__all__ = ["RequestBuilder"]

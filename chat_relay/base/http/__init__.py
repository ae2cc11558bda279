"""HTTP utilities package for providers.

Exposes pooled httpx clients.
"""

from .client import build_timeout, get_httpx_client, close_all_clients

__all__ = ["build_timeout", "get_httpx_client", "close_all_clients"]

"""HTTP utilities package.

Exposes the factory for explicitly owned ``httpx.AsyncClient`` instances.
"""

from .client import create_async_client

__all__ = ["create_async_client"]

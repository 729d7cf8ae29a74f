"""HTTP utilities package for providers.

Exposes the per-instance async client factory and the retrying transport.
"""

from .client import create_async_client, normalize_base_url
from .transport import RetryingTransport

__all__ = ["create_async_client", "normalize_base_url", "RetryingTransport"]

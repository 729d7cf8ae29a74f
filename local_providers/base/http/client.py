"""HTTP client construction for providers.

Purpose:
    Build the ``httpx.AsyncClient`` owned by one transport instance. Clients
    are never shared across provider instances, so two configured backends
    cannot leak connections, base URLs, or limits into each other.

External dependencies:
    - ``httpx`` for the underlying asynchronous HTTP client.

Timeout strategy:
    - httpx's own timeout is disabled (``timeout=None``); deadlines are
      enforced per call by :func:`local_providers.base.timeouts.race` so that
      a single mechanism covers handshake, body reads, and cancellation.
"""

from __future__ import annotations

from typing import Optional

import httpx

USER_AGENT = "local-providers/0.1"


def create_async_client(
    base_url: str,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Return a new ``httpx.AsyncClient`` bound to ``base_url``.

    Parameters:
        base_url: Backend root URL; request paths are resolved against it.
        transport: Optional custom transport (``httpx.MockTransport`` in tests).

    Returns:
        A fresh client the caller owns and must ``aclose()``.
    """
    return httpx.AsyncClient(
        base_url=normalize_base_url(base_url),
        timeout=None,
        transport=transport,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
    )


def normalize_base_url(base_url: str) -> str:
    """Strip whitespace and trailing slashes; default the scheme to ``http``.

    ``OLLAMA_HOST`` is commonly set as ``host:port`` without a scheme.
    """
    value = base_url.strip().rstrip("/")
    if value and "://" not in value:
        value = f"http://{value}"
    return value


__all__ = ["create_async_client", "normalize_base_url", "USER_AGENT"]

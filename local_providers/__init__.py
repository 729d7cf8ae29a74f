"""local_providers package

Client layer for locally hosted LLM inference servers.

Purpose:
    Give applications one contract (:class:`LocalLLMProvider`) over two wire
    protocols: the native Ollama HTTP API and the OpenAI-compatible API
    exposed by LM Studio and similar servers.

Public API (re-exported):
    - Version: ``__version__``
    - Clients: :class:`OllamaProvider`, :class:`LMStudioProvider`
    - Factory: :func:`create` / :class:`ProviderFactory`
    - Manager: :class:`LocalProviderManager`
    - Types and errors from :mod:`local_providers.base`
"""

from typing import Any

from .base import *  # noqa: F401,F403
from .base import __all__ as _base_all
from .base.factory import ProviderFactory
from .lmstudio.client import LMStudioProvider
from .manager import LocalProviderManager
from .ollama.client import OllamaProvider

__version__ = "0.1.0"


def create(provider: str, **kwargs: Any):
    """Create a backend client by name (``"ollama"``, ``"lm-studio"``)."""
    return ProviderFactory.create(provider, **kwargs)


__all__ = [
    "__version__",
    "create",
    "OllamaProvider",
    "LMStudioProvider",
    "LocalProviderManager",
    *_base_all,
]

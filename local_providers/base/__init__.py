"""
Provider Base Package

Exports the provider-agnostic contract, data types, error taxonomy,
cancellation primitives and the provider factory used by both backend
clients:

- Interfaces: the ``LocalLLMProvider`` capability contract
- Models: per-call request/response dataclasses
- Errors: typed ``ProviderError`` family
- Factory: lazy creation of backend clients by name
"""

from .cancellation import CancellationToken, CancelledError
from .dto import AdapterParams
from .errors import (
    ErrorCode,
    GenerationError,
    InvalidRequestError,
    ModelNotFoundError,
    ProviderConnectionError,
    ProviderError,
    ProviderTimeoutError,
)
from .factory import ProviderFactory, UnknownProviderError, create_provider
from .interfaces import LocalLLMProvider, ProgressSink
from .lifecycle import RequestRegistry
from .models import (
    ChatMessage,
    ChatOptions,
    ChatResponse,
    ModelDetails,
    ModelInfo,
    ProviderStatus,
    PullProgress,
    Role,
    StreamChunk,
    TokenUsage,
)
from .provider_base import BaseLocalProvider
from .streaming import accumulate_chunks
from .timeouts import TimeoutConfig, get_timeout_config

__all__ = [
    # Models
    "Role",
    "ChatMessage",
    "ChatOptions",
    "ChatResponse",
    "StreamChunk",
    "TokenUsage",
    "ModelDetails",
    "ModelInfo",
    "PullProgress",
    "ProviderStatus",
    # Interfaces
    "LocalLLMProvider",
    "ProgressSink",
    "BaseLocalProvider",
    # Errors
    "ErrorCode",
    "ProviderError",
    "ProviderConnectionError",
    "ProviderTimeoutError",
    "GenerationError",
    "ModelNotFoundError",
    "InvalidRequestError",
    "CancelledError",
    # Lifecycle
    "CancellationToken",
    "RequestRegistry",
    "TimeoutConfig",
    "get_timeout_config",
    "accumulate_chunks",
    # Factory
    "AdapterParams",
    "ProviderFactory",
    "UnknownProviderError",
    "create_provider",
]

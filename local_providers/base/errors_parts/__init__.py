"""Errors parts package public surface.

Re-exports individual error taxonomy components for optional direct imports.
Prefer importing from `local_providers.base.errors` for the stable surface.
"""

from .error_code import ErrorCode
from .provider_error import (
    GenerationError,
    InvalidRequestError,
    ModelNotFoundError,
    ProviderConnectionError,
    ProviderError,
    ProviderTimeoutError,
)
from .classification import classify_exception, error_from_status, make_error

__all__ = [
    "ErrorCode",
    "ProviderError",
    "ProviderConnectionError",
    "ProviderTimeoutError",
    "GenerationError",
    "ModelNotFoundError",
    "InvalidRequestError",
    "classify_exception",
    "error_from_status",
    "make_error",
]

"""Unified provider error taxonomy public surface.

This module re-exports the implementations under
``local_providers.base.errors_parts`` to maintain a stable import path.
``CancelledError`` lives with the cancellation primitives but is part of the
same family (it subclasses :class:`ProviderError`).
"""

from .errors_parts.error_code import ErrorCode
from .errors_parts.provider_error import (
    GenerationError,
    InvalidRequestError,
    ModelNotFoundError,
    ProviderConnectionError,
    ProviderError,
    ProviderTimeoutError,
)
from .errors_parts.classification import (
    classify_exception,
    error_from_status,
    extract_error_message,
    make_error,
)
from .cancellation_parts.cancelled_error import CancelledError

__all__ = [
    "ErrorCode",
    "ProviderError",
    "ProviderConnectionError",
    "ProviderTimeoutError",
    "GenerationError",
    "ModelNotFoundError",
    "InvalidRequestError",
    "CancelledError",
    "classify_exception",
    "error_from_status",
    "extract_error_message",
    "make_error",
]

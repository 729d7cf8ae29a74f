"""
Error classification helpers mapping exceptions and HTTP statuses to
normalized ``ErrorCode`` values and typed provider errors.

Transport-level failures (``httpx.TransportError`` and timeouts) map to the
retryable connection codes; HTTP responses that complete with a non-success
status are converted once, by :func:`error_from_status`, and never retried.
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, Optional, Type

import httpx

from .error_code import ErrorCode
from .provider_error import (
    GenerationError,
    InvalidRequestError,
    ModelNotFoundError,
    ProviderConnectionError,
    ProviderError,
    ProviderTimeoutError,
)


def _extract_status(exc: BaseException) -> Optional[int]:
    """Attempt to extract an HTTP status code from an exception.

    Supported attribute shapes (checked in order):
    - ``exc.status_code``
    - ``exc.response.status_code``
    Returns ``None`` if no valid status can be found.
    """
    val = getattr(exc, "status_code", None)
    if isinstance(val, int) and 100 <= val < 600:
        return val
    resp = getattr(exc, "response", None)
    if resp is not None:
        sc = getattr(resp, "status_code", None)
        if isinstance(sc, int) and 100 <= sc < 600:
            return sc
    return None


_HTTP_STATUS_MAP: Dict[int, ErrorCode] = {
    400: ErrorCode.INVALID_REQUEST,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.INVALID_REQUEST,
    408: ErrorCode.TIMEOUT,
    422: ErrorCode.INVALID_REQUEST,
    504: ErrorCode.TIMEOUT,
}

_ERROR_TYPES: Dict[ErrorCode, Type[ProviderError]] = {
    ErrorCode.CONNECTION: ProviderConnectionError,
    ErrorCode.TIMEOUT: ProviderTimeoutError,
    ErrorCode.GENERATION: GenerationError,
    ErrorCode.NOT_FOUND: ModelNotFoundError,
    ErrorCode.INVALID_REQUEST: InvalidRequestError,
}


def status_to_code(status: int) -> ErrorCode:
    """Map a non-success HTTP status to an error code (default: generation)."""
    return _HTTP_STATUS_MAP.get(status, ErrorCode.GENERATION)


def classify_exception(exc: BaseException) -> ErrorCode:
    """Classify an exception into a normalized :class:`ErrorCode`.

    Precedence:
        1. ProviderError passthrough.
        2. Timeout exceptions (httpx, builtin, asyncio).
        3. Other httpx transport failures (connect, read, protocol).
        4. HTTP status mapping.
        5. ``UNKNOWN`` fallback.
    """
    if isinstance(exc, ProviderError):
        return exc.code
    if isinstance(exc, (httpx.TimeoutException, TimeoutError, asyncio.TimeoutError)):
        return ErrorCode.TIMEOUT
    if isinstance(exc, (httpx.TransportError, httpx.StreamError, OSError)):
        return ErrorCode.CONNECTION
    status = _extract_status(exc)
    if status is not None:
        return status_to_code(status)
    return ErrorCode.UNKNOWN


def extract_error_message(body: Any) -> Optional[str]:
    """Return the backend's error message from a decoded error body.

    Accepts the native shape ``{"error": "..."}`` and the OpenAI-compatible
    shape ``{"error": {"message": "..."}}``.
    """
    if not isinstance(body, dict):
        return None
    err = body.get("error")
    if isinstance(err, str) and err.strip():
        return err.strip()
    if isinstance(err, dict):
        msg = err.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()
    msg = body.get("message")
    if isinstance(msg, str) and msg.strip():
        return msg.strip()
    return None


def make_error(
    code: ErrorCode,
    message: str,
    *,
    provider: str,
    model: Optional[str] = None,
    raw: Optional[BaseException] = None,
) -> ProviderError:
    """Construct the typed error class matching ``code``."""
    klass = _ERROR_TYPES.get(code)
    if klass is None:
        return ProviderError(code=code, message=message, provider=provider, model=model, raw=raw)
    return klass(message, provider=provider, model=model, raw=raw)


def error_from_status(
    response: httpx.Response,
    *,
    provider: str,
    model: Optional[str] = None,
) -> ProviderError:
    """Build the typed error for a completed non-success HTTP response.

    The response body must already be read (``await response.aread()`` for
    streamed responses).
    """
    detail: Optional[str] = None
    try:
        detail = extract_error_message(response.json())
    except (json.JSONDecodeError, ValueError, httpx.ResponseNotRead):
        detail = None
    if detail is None:
        try:
            detail = response.text.strip() or None
        except httpx.ResponseNotRead:
            detail = None
    message = f"HTTP {response.status_code}: {detail or response.reason_phrase or 'request failed'}"
    return make_error(status_to_code(response.status_code), message, provider=provider, model=model)


__all__ = [
    "classify_exception",
    "status_to_code",
    "extract_error_message",
    "make_error",
    "error_from_status",
    "_extract_status",
    "_HTTP_STATUS_MAP",
]

"""Cancellation error type.

Defines the public ``CancelledError`` used to signal that a call was aborted
through its cancellation handle. Kept isolated to satisfy one-class-per-file
policy.
"""

from __future__ import annotations

from ..errors_parts.error_code import ErrorCode
from ..errors_parts.provider_error import _TypedProviderError


class CancelledError(_TypedProviderError):
    """Raised when an in-flight call is cancelled cooperatively.

    This specialized error distinguishes explicit cancellation from other
    failures, enabling targeted handling (streams end silently, the retrying
    transport never retries it, logs use the ``cancelled`` code).

    Unrelated to :class:`asyncio.CancelledError`, which signals task
    cancellation by the event loop and is never swallowed here.
    """

    CODE = ErrorCode.CANCELLED


__all__ = ["CancelledError"]

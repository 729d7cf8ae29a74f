"""Cooperative cancellation primitives (public API facade).

Purpose
-------
Expose stable cancellation constructs via the canonical
``local_providers.base.cancellation`` import path while the concrete
implementations live under ``cancellation_parts``.

Notes
-----
- ``CancellationToken`` is the cancellation handle stored per in-flight
	request in the lifecycle registry.
- ``CancelledError`` is raised by operations that observe a cancellation request.
"""

from .cancellation_parts.cancelled_error import CancelledError
from .cancellation_parts.cancellation_token import CancellationToken

__all__ = ["CancellationToken", "CancelledError"]

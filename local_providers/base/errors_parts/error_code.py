"""
Normalized provider error codes (taxonomy).

Defines the `ErrorCode` enumeration used across the backend clients and the
retrying transport. Values are lowercase snake_case and are considered a
stable public contract for logging.
"""
from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Enumerated normalized error codes representing failure categories."""

    CONNECTION = "connection"
    TIMEOUT = "timeout"
    GENERATION = "generation"
    NOT_FOUND = "not_found"
    INVALID_REQUEST = "invalid_request"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


__all__ = ["ErrorCode"]

"""
Structured provider error exception types.

`ProviderError` carries a normalized `ErrorCode` for consistent handling,
retry decisions, and structured logging. The typed subclasses pin the code so
callers can branch with ``except`` clauses instead of inspecting fields.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .error_code import ErrorCode


@dataclass
class ProviderError(Exception):
    """Represents a structured provider error with a normalized error code.

    Attributes:
        code: Normalized :class:`ErrorCode` classification for the failure.
        message: Human-readable error message suitable for logging.
        provider: Provider key where the error originated (e.g., ``"ollama"``).
        model: Optional model name associated with the failure.
        retryable: Whether the retrying transport may attempt the call again.
        raw: Optional original exception for diagnostics.
    """

    code: ErrorCode
    message: str
    provider: str
    model: Optional[str] = None
    retryable: bool = False
    raw: Optional[BaseException] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        """Return a compact string combining provider, model, code, and message."""
        return f"{self.provider}:{self.model or '-'} {self.code.value}: {self.message}"


class _TypedProviderError(ProviderError):
    """Base for errors whose code is fixed by the class."""

    CODE: ErrorCode = ErrorCode.UNKNOWN
    RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        model: Optional[str] = None,
        raw: Optional[BaseException] = None,
    ) -> None:
        super().__init__(
            code=self.CODE,
            message=message,
            provider=provider,
            model=model,
            retryable=self.RETRYABLE,
            raw=raw,
        )


class ProviderConnectionError(_TypedProviderError):
    """Backend unreachable, connection dropped, or retries exhausted."""

    CODE = ErrorCode.CONNECTION
    RETRYABLE = True


class ProviderTimeoutError(ProviderConnectionError):
    """A call (or one read of a stream) exceeded its deadline."""

    CODE = ErrorCode.TIMEOUT


class GenerationError(_TypedProviderError):
    """Backend was reached but reported a failure."""

    CODE = ErrorCode.GENERATION


class ModelNotFoundError(_TypedProviderError):
    """The requested model is not installed on the backend."""

    CODE = ErrorCode.NOT_FOUND


class InvalidRequestError(_TypedProviderError):
    """Operation unsupported by this backend, or malformed caller input."""

    CODE = ErrorCode.INVALID_REQUEST


__all__ = [
    "ProviderError",
    "ProviderConnectionError",
    "ProviderTimeoutError",
    "GenerationError",
    "ModelNotFoundError",
    "InvalidRequestError",
]

"""Unified timeout & cancellation race utilities for providers.

This module centralizes the timeout values that are not owned by a single
client instance (liveness probe, stream idle wait) and exposes :func:`race`,
the one primitive every awaited network step goes through.

Key Components
--------------
TimeoutConfig
    Dataclass capturing normalized timeout values.

get_timeout_config()
    Returns a process-cached configuration, parsing environment overrides on
    first use only. Supported environment variables (all optional):
        LOCAL_PROVIDERS_PROBE_TIMEOUT_SECONDS
        LOCAL_PROVIDERS_STREAM_TIMEOUT_SECONDS

race(awaitable, timeout=..., token=...)
    Runs the awaitable as its own task and races it against a timer and a
    cancellation token. Whichever settles first decides the outcome.

Failure Modes
-------------
``TimeoutError`` when the timer wins; ``CancelledError`` (provider flavour)
when the token wins. Task cancellation coming from the event loop itself is
re-raised untouched.
"""
from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from typing import Awaitable, Optional, TypeVar

from .cancellation import CancellationToken, CancelledError

T = TypeVar("T")


@dataclass(frozen=True)
class TimeoutConfig:
    """Container for normalized timeout values (seconds).

    Attributes:
        probe_timeout_seconds: Deadline for the short liveness probe used by
            ``is_available`` and ``get_status``.
        stream_timeout_seconds: Idle timeout while waiting for the next read
            of a streaming body when the client has no override.
    """

    probe_timeout_seconds: float = 3.0
    stream_timeout_seconds: float = 120.0


_CACHED: TimeoutConfig | None = None
_ENV_GUARD: str | None = None


def _parse_env_float(name: str, default: float) -> float:
    """Parse a positive float from the environment, falling back to ``default``."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = float(raw)
        return val if val > 0 else default
    except ValueError:  # pragma: no cover
        return default


def get_timeout_config() -> TimeoutConfig:
    """Return process-cached `TimeoutConfig` instance.

    The cache is refreshed when the relevant environment variables change so
    tests can adjust them at runtime.
    """
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - documented module cache
    cur_guard = "/".join(
        [
            os.getenv("LOCAL_PROVIDERS_PROBE_TIMEOUT_SECONDS", ""),
            os.getenv("LOCAL_PROVIDERS_STREAM_TIMEOUT_SECONDS", ""),
        ]
    )
    if _CACHED is not None and _ENV_GUARD == cur_guard:
        return _CACHED
    defaults = TimeoutConfig()
    _CACHED = TimeoutConfig(
        probe_timeout_seconds=_parse_env_float(
            "LOCAL_PROVIDERS_PROBE_TIMEOUT_SECONDS", defaults.probe_timeout_seconds
        ),
        stream_timeout_seconds=_parse_env_float(
            "LOCAL_PROVIDERS_STREAM_TIMEOUT_SECONDS", defaults.stream_timeout_seconds
        ),
    )
    _ENV_GUARD = cur_guard
    return _CACHED


async def race(
    awaitable: Awaitable[T],
    *,
    timeout: Optional[float],
    token: Optional[CancellationToken] = None,
    provider: str = "local",
) -> T:
    """Await ``awaitable`` unless the timer or the token settles first.

    Parameters:
        awaitable: Coroutine or awaitable to run as a separate task.
        timeout: Seconds before giving up; ``None`` or ``<= 0`` disables the timer.
        token: Optional cancellation handle; triggering it cancels the task.
        provider: Provider name attached to the raised ``CancelledError``.

    Raises:
        TimeoutError: The deadline elapsed first.
        CancelledError: The token was triggered first.
    """
    task = asyncio.ensure_future(awaitable)
    remove = token.on_cancel(task.cancel) if token is not None else None
    try:
        if timeout is None or timeout <= 0:
            return await task
        return await asyncio.wait_for(task, timeout)
    except asyncio.CancelledError:
        if token is not None and token.cancelled:
            raise CancelledError(token.reason or "operation cancelled", provider=provider) from None
        raise
    except asyncio.TimeoutError as exc:
        raise TimeoutError(f"operation exceeded {timeout}s") from exc
    finally:
        if remove is not None:
            remove()
        if not task.done():
            task.cancel()


__all__ = [
    "TimeoutConfig",
    "get_timeout_config",
    "race",
]

from __future__ import annotations

import asyncio
import functools
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Protocol, TypeVar

from ..errors import (
    CancelledError,
    ProviderConnectionError,
    ProviderError,
    ProviderTimeoutError,
)

T = TypeVar("T")


class AttemptLogger(Protocol):  # pragma: no cover - structural protocol
    def __call__(
        self,
        *,
        attempt: int,
        max_attempts: int,
        delay: float | None,
        error: ProviderError | None,
    ) -> None: ...


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    base_delay_ms: float = 500.0  # delay = base_delay_ms * 2**attempt
    max_delay_ms: float = 8000.0
    attempt_logger: AttemptLogger | None = None

    def delays(self) -> Iterable[float]:
        """Yield the sleep (seconds) before each retry, capped at ``max_delay_ms``."""
        for attempt in range(max(self.max_attempts, 1) - 1):
            yield min(self.base_delay_ms * (2**attempt), self.max_delay_ms) / 1000.0


DEFAULT_RETRY_CONFIG = RetryConfig()


def async_retry(config: RetryConfig = DEFAULT_RETRY_CONFIG, *, sleep=asyncio.sleep):
    """Return a decorator applying the standardized retry policy to a coroutine.

    - Retries only transport-level failures (``ProviderConnectionError`` and
      its timeout subclass); every other error propagates on first sight
    - ``CancelledError`` is never retried
    - Exponential backoff using ``base_delay_ms * 2**attempt`` (capped)
    - Exhaustion re-raises the same error type wrapping the last failure
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            last_exc: ProviderConnectionError | None = None
            delays = list(config.delays()) + [None]  # final attempt has delay None
            for attempt, delay in enumerate(delays):
                try:
                    result = await func(*args, **kwargs)
                    if config.attempt_logger:
                        config.attempt_logger(
                            attempt=attempt,
                            max_attempts=config.max_attempts,
                            delay=None,
                            error=None,
                        )
                    return result
                except CancelledError:
                    raise
                except ProviderConnectionError as e:
                    last_exc = e
                    if config.attempt_logger:
                        config.attempt_logger(
                            attempt=attempt,
                            max_attempts=config.max_attempts,
                            delay=delay,
                            error=e,
                        )
                    if delay is not None:
                        await sleep(delay)
                        continue
            if last_exc is None:  # pragma: no cover
                raise RuntimeError("retry: reached terminal state without captured exception")
            klass = ProviderTimeoutError if isinstance(last_exc, ProviderTimeoutError) else ProviderConnectionError
            raise klass(
                f"gave up after {len(delays)} attempt(s): {last_exc.message}",
                provider=last_exc.provider,
                model=last_exc.model,
                raw=last_exc.raw or last_exc,
            ) from last_exc

        return wrapper

    return decorator


__all__ = [
    "AttemptLogger",
    "RetryConfig",
    "DEFAULT_RETRY_CONFIG",
    "async_retry",
]

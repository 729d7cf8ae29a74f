"""Retrying HTTP transport shared by every backend client.

Purpose:
    Wrap one HTTP call with a per-call timeout, bounded exponential-backoff
    retry, and an externally supplied cancellation handle. Both backend
    clients own one instance each; the policy lives here only.

Retry semantics:
    - Retried: transport-level failures only (connection refused, DNS, timeouts,
      a connection dropped before the response head arrived).
    - Not retried: a response that completed with a non-success status. It is
      returned as-is; mapping it to a typed error is the client's job.
    - Not retried: cancellation through the token.
    - Exhaustion raises ``ProviderConnectionError`` (``ProviderTimeoutError``
      when the last attempt timed out) wrapping the last failure.

Streaming:
    ``open_stream`` retries the handshake only. Once the body is flowing,
    ``iter_frames`` reads it chunk by chunk; each read is raced against the
    idle timeout and the token, and mid-stream failures surface through the
    iterator as typed errors (a stream is never replayed).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Optional

import httpx

from ..cancellation import CancellationToken, CancelledError
from ..errors import ErrorCode, ProviderError, classify_exception, make_error
from ..logging import LogContext, normalized_log_event
from ..resilience.retry import RetryConfig, async_retry
from ..streaming.decoders import Frame, FrameDecoder
from ..timeouts import get_timeout_config, race
from .client import create_async_client, normalize_base_url


class RetryingTransport:
    """One ``httpx.AsyncClient`` plus the timeout/retry/cancellation policy.

    Attributes are settable at runtime. Changing ``base_url`` re-points the
    existing client; requests already built keep their absolute URLs.
    """

    def __init__(
        self,
        base_url: str,
        *,
        provider: str,
        timeout: float,
        retry: Optional[RetryConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._base_url = normalize_base_url(base_url)
        self._provider = provider
        self._timeout = float(timeout)
        self._retry = retry or RetryConfig()
        self._http_transport = transport
        self._logger = logger or logging.getLogger("local_providers.transport")
        self._client: Optional[httpx.AsyncClient] = None

    # ---- configuration ---------------------------------------------------
    @property
    def base_url(self) -> str:
        return self._base_url

    @base_url.setter
    def base_url(self, value: str) -> None:
        value = normalize_base_url(value)
        if value == self._base_url:
            return
        self._base_url = value
        if self._client is not None:
            self._client.base_url = value

    @property
    def timeout(self) -> float:
        return self._timeout

    @timeout.setter
    def timeout(self, value: float) -> None:
        self._timeout = float(value)

    @property
    def retry_config(self) -> RetryConfig:
        return self._retry

    @property
    def max_attempts(self) -> int:
        return self._retry.max_attempts

    @max_attempts.setter
    def max_attempts(self, value: int) -> None:
        self._retry = RetryConfig(
            max_attempts=max(int(value), 1),
            base_delay_ms=self._retry.base_delay_ms,
            max_delay_ms=self._retry.max_delay_ms,
            attempt_logger=self._retry.attempt_logger,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = create_async_client(self._base_url, transport=self._http_transport)
        return self._client

    # ---- calls -----------------------------------------------------------
    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        token: Optional[CancellationToken] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        ctx: Optional[LogContext] = None,
    ) -> httpx.Response:
        """Send one request under the retry policy and return its response.

        The body is fully read. Non-success statuses are returned, not raised.
        """
        deadline = self._timeout if timeout is None else timeout

        async def _attempt() -> httpx.Response:
            request = self.client.build_request(method, path, json=json)
            return await self._guard(self.client.send(request), token=token, timeout=deadline)

        return await self._with_retry(
            _attempt, ctx=ctx, phase=f"{method} {path}", max_attempts=max_attempts, token=token
        )

    async def open_stream(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        token: Optional[CancellationToken] = None,
        timeout: Optional[float] = None,
        ctx: Optional[LogContext] = None,
    ) -> httpx.Response:
        """Open a streaming response; only the handshake is retried.

        The caller owns the returned response and must ``aclose()`` it.
        """
        deadline = self._timeout if timeout is None else timeout

        async def _attempt() -> httpx.Response:
            request = self.client.build_request(method, path, json=json)
            return await self._guard(self.client.send(request, stream=True), token=token, timeout=deadline)

        return await self._with_retry(_attempt, ctx=ctx, phase=f"{method} {path} (stream)", token=token)

    async def iter_frames(
        self,
        response: httpx.Response,
        decoder: FrameDecoder,
        *,
        token: Optional[CancellationToken] = None,
        timeout: Optional[float] = None,
        model: Optional[str] = None,
    ) -> AsyncIterator[Frame]:
        """Yield decoded frames from a streaming response in arrival order.

        Suspends at every read of the body. Stops early when the decoder
        reports an end-of-stream sentinel.
        """
        idle = timeout if timeout is not None else (self._timeout or get_timeout_config().stream_timeout_seconds)
        chunks = response.aiter_text()
        try:
            while not decoder.finished:
                try:
                    text = await self._guard(chunks.__anext__(), token=token, timeout=idle, model=model)
                except StopAsyncIteration:
                    break
                for frame in decoder.feed(text):
                    yield frame
            for frame in decoder.flush():
                yield frame
        finally:
            await chunks.aclose()

    async def aclose(self) -> None:
        """Close the owned client."""
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()

    # ---- internals -------------------------------------------------------
    async def _guard(
        self,
        awaitable,
        *,
        token: Optional[CancellationToken],
        timeout: Optional[float],
        model: Optional[str] = None,
    ):
        """Race one await against the deadline and token; map failures to typed errors."""
        try:
            return await race(awaitable, timeout=timeout, token=token, provider=self._provider)
        except (CancelledError, ProviderError):
            raise
        except (httpx.TransportError, httpx.StreamError, TimeoutError, OSError) as exc:
            code = classify_exception(exc)
            if code not in (ErrorCode.TIMEOUT, ErrorCode.CONNECTION):
                code = ErrorCode.CONNECTION
            raise make_error(code, str(exc) or exc.__class__.__name__, provider=self._provider, model=model, raw=exc) from exc

    async def _with_retry(
        self,
        attempt_fn,
        *,
        ctx: Optional[LogContext],
        phase: str,
        max_attempts: Optional[int] = None,
        token: Optional[CancellationToken] = None,
    ):
        cfg = self._retry
        if max_attempts is not None:
            cfg = RetryConfig(
                max_attempts=max(int(max_attempts), 1),
                base_delay_ms=cfg.base_delay_ms,
                max_delay_ms=cfg.max_delay_ms,
                attempt_logger=cfg.attempt_logger,
            )
        if cfg.attempt_logger is None:
            cfg = RetryConfig(
                max_attempts=cfg.max_attempts,
                base_delay_ms=cfg.base_delay_ms,
                max_delay_ms=cfg.max_delay_ms,
                attempt_logger=self._attempt_logger(ctx, phase),
            )

        async def _backoff(delay: float) -> None:
            # Backoff waits are interruptible by the same token as the attempts.
            await race(asyncio.sleep(delay), timeout=None, token=token, provider=self._provider)

        return await async_retry(cfg, sleep=_backoff)(attempt_fn)()

    def _attempt_logger(self, ctx: Optional[LogContext], phase: str):
        log_ctx = ctx or LogContext(provider=self._provider)

        def _log(*, attempt: int, max_attempts: int, delay, error: ProviderError | None) -> None:
            if error is None and attempt == 0:
                return
            normalized_log_event(
                self._logger,
                "retry.attempt",
                log_ctx,
                phase=phase,
                attempt=attempt,
                max_attempts=max_attempts,
                delay=delay,
                error_code=(error.code.value if error else None),
                will_retry=bool(error and delay is not None),
                level=logging.WARNING if error else logging.INFO,
            )

        return _log


__all__ = ["RetryingTransport"]

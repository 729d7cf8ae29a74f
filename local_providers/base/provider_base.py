"""Shared implementation of the local-provider capability contract.

Purpose:
    Hold everything both backend clients do identically so that each client
    only describes its wire protocol:

    - configuration resolution and per-instance accessors
      (``base_url``, ``timeout``, ``max_retries``);
    - one ``RetryingTransport`` and one ``RequestRegistry`` per instance;
    - ``cancel`` / ``cancel_all`` and the request lifecycle around every call;
    - ``is_available`` / ``get_status`` wrappers that never raise;
    - template implementations of ``chat``, ``chat_stream`` and ``embed``
      driven by small protocol hooks implemented by subclasses;
    - mapping of non-success responses to typed errors.

Cancellation semantics:
    ``chat``/``embed``/``pull_model`` raise ``CancelledError``; ``chat_stream``
    ends silently (no further chunks, no error).
"""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from contextlib import aclosing
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import httpx

from ..config import coerce_float, coerce_int, coerce_non_empty_str, get_provider_config
from ..config.defaults import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_BASE_DELAY_MS,
    DEFAULT_RETRY_MAX_DELAY_MS,
    TEST_MODEL_MAX_TOKENS,
    TEST_MODEL_PROMPT,
)
from .cancellation import CancellationToken, CancelledError
from .errors import (
    GenerationError,
    InvalidRequestError,
    ProviderConnectionError,
    ProviderError,
    error_from_status,
)
from .http import RetryingTransport
from .interfaces import ProgressSink
from .lifecycle import RequestRegistry
from .logging import LogContext, get_logger, normalized_log_event
from .models import (
    ChatMessage,
    ChatOptions,
    ChatResponse,
    ModelInfo,
    ProviderStatus,
    PullProgress,
    StreamChunk,
)
from .resilience import RetryConfig
from .streaming.decoders import Frame, FrameDecoder
from .timeouts import get_timeout_config


class BaseLocalProvider(ABC):
    """Base class for local backend clients.

    Subclasses set the class attributes and implement the protocol hooks.
    """

    PROVIDER_NAME: str = "local"
    CONFIG_KEY: str = "local"
    DEFAULT_BASE_URL: str = ""
    DEFAULT_TIMEOUT_SECONDS: float = 60.0
    PROBE_PATH: str = "/"

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Resolve configuration and build the per-instance transport and registry.

        Parameters
        ----------
        base_url:
            Backend root URL. Falls back to config file, ``<PROVIDER>_BASE_URL``
            / ``<PROVIDER>_HOST`` and finally the backend's default local port.
        timeout:
            Per-call timeout in seconds (also the idle timeout between stream reads).
        max_retries:
            Total attempts per call for transport-level failures.
        transport:
            Optional ``httpx`` transport, mainly ``httpx.MockTransport`` in tests.
        """
        cfg = get_provider_config(
            self.CONFIG_KEY,
            overrides={"base_url": base_url, "timeout": timeout, "max_retries": max_retries},
        )
        self._logger = get_logger(f"local_providers.{self.CONFIG_KEY}")
        retry = RetryConfig(
            max_attempts=coerce_int(cfg.get("max_retries"), DEFAULT_MAX_RETRIES),
            base_delay_ms=coerce_float(cfg.get("retry_base_delay_ms"), DEFAULT_RETRY_BASE_DELAY_MS),
            max_delay_ms=coerce_float(cfg.get("retry_max_delay_ms"), DEFAULT_RETRY_MAX_DELAY_MS),
        )
        self._transport = RetryingTransport(
            coerce_non_empty_str(cfg.get("base_url"), self.DEFAULT_BASE_URL),
            provider=self.provider_name,
            timeout=coerce_float(cfg.get("timeout"), self.DEFAULT_TIMEOUT_SECONDS),
            retry=retry,
            transport=transport,
            logger=self._logger,
        )
        self._requests = RequestRegistry(self.provider_name)

    # ---- identity & configuration ----------------------------------------
    @property
    def provider_name(self) -> str:
        """Return the stable provider identifier string."""
        return self.PROVIDER_NAME

    @property
    def base_url(self) -> str:
        return self._transport.base_url

    @base_url.setter
    def base_url(self, value: str) -> None:
        if not isinstance(value, str) or not value.strip():
            raise InvalidRequestError("base_url must be a non-empty string", provider=self.provider_name)
        self._transport.base_url = value

    @property
    def timeout(self) -> float:
        return self._transport.timeout

    @timeout.setter
    def timeout(self, value: float) -> None:
        if not isinstance(value, (int, float)) or value <= 0:
            raise InvalidRequestError("timeout must be a positive number of seconds", provider=self.provider_name)
        self._transport.timeout = float(value)

    @property
    def max_retries(self) -> int:
        return self._transport.max_attempts

    @max_retries.setter
    def max_retries(self, value: int) -> None:
        if not isinstance(value, int) or value < 1:
            raise InvalidRequestError("max_retries must be an integer >= 1", provider=self.provider_name)
        self._transport.max_attempts = value

    # ---- request lifecycle -----------------------------------------------
    def active_requests(self) -> List[str]:
        """Return the ids of calls currently in flight on this instance."""
        return self._requests.active_ids()

    def cancel(self, request_id: str) -> bool:
        """Abort one in-flight call. Returns False when it had already settled."""
        cancelled = self._requests.cancel(request_id)
        normalized_log_event(
            self._logger,
            "request.cancel",
            LogContext(provider=self.provider_name, request_id=request_id),
            phase="cancel",
            emitted=cancelled,
        )
        return cancelled

    def cancel_all(self) -> int:
        """Abort every in-flight call on this instance; returns how many."""
        count = self._requests.cancel_all("cancel_all")
        if count:
            normalized_log_event(
                self._logger,
                "request.cancel_all",
                LogContext(provider=self.provider_name),
                phase="cancel",
                emitted=count,
            )
        return count

    async def aclose(self) -> None:
        """Cancel whatever is in flight and close the HTTP client."""
        self.cancel_all()
        await self._transport.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ---- health ----------------------------------------------------------
    async def is_available(self) -> bool:
        """Single-attempt liveness probe with the short probe timeout; never raises."""
        try:
            resp = await self._transport.request(
                "GET",
                self.PROBE_PATH,
                timeout=get_timeout_config().probe_timeout_seconds,
                max_attempts=1,
            )
        except Exception:  # noqa: BLE001 - any failure means "not available"
            return False
        return resp.is_success

    async def get_status(self) -> ProviderStatus:
        """Best-effort status snapshot; returns ``running=False`` instead of raising."""
        try:
            return await self._fetch_status()
        except Exception as exc:  # noqa: BLE001 - status must never raise
            normalized_log_event(
                self._logger,
                "status.error",
                LogContext(provider=self.provider_name),
                phase="status",
                error_code=getattr(getattr(exc, "code", None), "value", "unknown"),
                error=str(exc),
                level=logging.DEBUG,
            )
            return ProviderStatus(running=False, models_count=0)

    async def test_model(self, name: str, prompt: str = TEST_MODEL_PROMPT) -> str:
        """Send one short prompt to ``name`` and return the reply text."""
        response = await self.chat(
            ChatOptions(
                model=self._require_name(name, "model"),
                messages=[ChatMessage(role="user", content=prompt)],
                max_tokens=TEST_MODEL_MAX_TOKENS,
            )
        )
        return response.text

    # ---- template operations ---------------------------------------------
    async def chat(self, options: ChatOptions, *, request_id: Optional[str] = None) -> ChatResponse:
        """Single chat round trip (see the capability contract)."""
        with self._requests.track("chat", request_id) as entry:
            ctx = self._ctx("chat", options.model, entry.request_id)
            normalized_log_event(
                self._logger,
                "chat.start",
                ctx,
                phase="start",
                messages=len(options.messages),
                **options.sampling(),
            )
            path, payload = self._chat_request(options, stream=False)
            try:
                data = await self._request_json("POST", path, json=payload, token=entry.token, model=options.model, ctx=ctx)
                response = self._parse_chat_response(data, options)
            except CancelledError:
                normalized_log_event(self._logger, "chat.cancelled", ctx, phase="finalize", emitted=False)
                raise
            except ProviderError as exc:
                self._log_failure("chat.error", ctx, exc)
                raise
            normalized_log_event(
                self._logger,
                "chat.end",
                ctx,
                phase="finalize",
                emitted=True,
                tokens=response.usage,
                finish_reason=response.finish_reason,
            )
            return response

    async def chat_stream(self, options: ChatOptions, *, request_id: Optional[str] = None) -> AsyncIterator[StreamChunk]:
        """Lazy stream of chunks ending with exactly one terminal chunk.

        Nothing is sent until iteration starts. Errors propagate through the
        iterator; cancellation ends it without a terminal chunk or error.

        A consumer that may stop early should wrap the iterator in
        ``contextlib.aclosing`` so the request is released and the response
        closed as soon as the loop exits::

            async with aclosing(provider.chat_stream(options)) as stream:
                async for chunk in stream:
                    ...
        """
        with self._requests.track("chat_stream", request_id) as entry:
            ctx = self._ctx("chat_stream", options.model, entry.request_id)
            normalized_log_event(self._logger, "stream.start", ctx, phase="start", messages=len(options.messages))
            path, payload = self._chat_request(options, stream=True)
            decoder = self._new_decoder(ctx)
            emitted = 0
            terminal: Optional[StreamChunk] = None
            frames = self._stream_frames(
                "POST", path, payload, decoder, token=entry.token, model=options.model, ctx=ctx
            )
            try:
                async with aclosing(frames):
                    async for frame in frames:
                        chunk = self._chunk_from_frame(frame, options)
                        if chunk is None:
                            continue
                        entry.token.raise_if_cancelled()
                        emitted += 1
                        yield chunk
                        if chunk.done:
                            terminal = chunk
                            break
                if terminal is None:
                    terminal = self._end_of_stream(options, decoder)
                    emitted += 1
                    yield terminal
            except CancelledError:
                normalized_log_event(self._logger, "stream.cancelled", ctx, phase="finalize", emitted=emitted)
                return
            except ProviderError as exc:
                self._log_failure("stream.error", ctx, exc, emitted=emitted)
                raise
            normalized_log_event(
                self._logger,
                "stream.end",
                ctx,
                phase="finalize",
                emitted=emitted,
                tokens=terminal.usage,
                finish_reason=terminal.finish_reason,
            )

    async def embed(self, text: str, model: str, *, request_id: Optional[str] = None) -> List[float]:
        """Return the embedding vector of ``text`` computed by ``model``."""
        model = self._require_name(model, "model")
        with self._requests.track("embed", request_id) as entry:
            ctx = self._ctx("embed", model, entry.request_id)
            path, payload = self._embed_request(text, model)
            try:
                data = await self._request_json("POST", path, json=payload, token=entry.token, model=model, ctx=ctx)
                vector = self._parse_embedding(data, model)
            except CancelledError:
                normalized_log_event(self._logger, "embed.cancelled", ctx, phase="finalize", emitted=False)
                raise
            except ProviderError as exc:
                self._log_failure("embed.error", ctx, exc)
                raise
            normalized_log_event(self._logger, "embed.end", ctx, phase="finalize", emitted=True, dimensions=len(vector))
            return vector

    # ---- abstract protocol hooks -----------------------------------------
    @abstractmethod
    async def list_models(self) -> List[ModelInfo]:
        """Return installed models."""

    @abstractmethod
    async def pull_model(
        self, name: str, on_progress: Optional[ProgressSink] = None, *, request_id: Optional[str] = None
    ) -> None:
        """Download a model."""

    @abstractmethod
    async def delete_model(self, name: str) -> None:
        """Remove a model."""

    @abstractmethod
    async def _fetch_status(self) -> ProviderStatus:
        """Collect a status snapshot; may raise (``get_status`` absorbs it)."""

    @abstractmethod
    def _chat_request(self, options: ChatOptions, *, stream: bool) -> Tuple[str, Dict[str, Any]]:
        """Return ``(path, payload)`` for a chat call."""

    @abstractmethod
    def _parse_chat_response(self, data: Any, options: ChatOptions) -> ChatResponse:
        """Map a single-shot chat body to a :class:`ChatResponse`."""

    @abstractmethod
    def _new_decoder(self, ctx: LogContext) -> FrameDecoder:
        """Return a fresh frame decoder for this backend's stream format."""

    @abstractmethod
    def _chunk_from_frame(self, frame: Frame, options: ChatOptions) -> Optional[StreamChunk]:
        """Map one decoded frame to a chunk; ``None`` skips the frame."""

    @abstractmethod
    def _end_of_stream(self, options: ChatOptions, decoder: FrameDecoder) -> StreamChunk:
        """Handle a body that ended before a terminal frame (return a chunk or raise)."""

    @abstractmethod
    def _embed_request(self, text: str, model: str) -> Tuple[str, Dict[str, Any]]:
        """Return ``(path, payload)`` for an embedding call."""

    @abstractmethod
    def _parse_embedding(self, data: Any, model: str) -> List[float]:
        """Extract the vector from an embedding body."""

    # ---- shared helpers ----------------------------------------------------
    def _ctx(self, operation: str, model: Optional[str] = None, request_id: Optional[str] = None) -> LogContext:
        return LogContext(provider=self.provider_name, model=model, request_id=request_id, operation=operation)

    def _require_name(self, value: str, what: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise InvalidRequestError(f"{what} name must be a non-empty string", provider=self.provider_name)
        return value.strip()

    def _unsupported(self, operation: str, model: Optional[str] = None) -> InvalidRequestError:
        return InvalidRequestError(
            f"{operation} is not supported by the {self.provider_name} backend",
            provider=self.provider_name,
            model=model,
        )

    def _raise_for_status(self, response: httpx.Response, *, model: Optional[str] = None) -> None:
        if not response.is_success:
            raise error_from_status(response, provider=self.provider_name, model=model)

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        token: Optional[CancellationToken] = None,
        model: Optional[str] = None,
        ctx: Optional[LogContext] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
    ) -> Any:
        """Issue a request, map non-success statuses, and decode the JSON body."""
        resp = await self._transport.request(
            method, path, json=json, token=token, ctx=ctx, timeout=timeout, max_attempts=max_attempts
        )
        self._raise_for_status(resp, model=model)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise GenerationError(
                f"malformed JSON body from {path}", provider=self.provider_name, model=model, raw=exc
            ) from exc

    async def _stream_frames(
        self,
        method: str,
        path: str,
        payload: Dict[str, Any],
        decoder: FrameDecoder,
        *,
        token: Optional[CancellationToken],
        model: Optional[str],
        ctx: Optional[LogContext],
    ) -> AsyncIterator[Frame]:
        """Open a streaming call and yield decoded frames; always closes the response."""
        response = await self._transport.open_stream(method, path, json=payload, token=token, ctx=ctx)
        try:
            if not response.is_success:
                await response.aread()
                self._raise_for_status(response, model=model)
            frames = self._transport.iter_frames(response, decoder, token=token, model=model)
            async with aclosing(frames):
                async for frame in frames:
                    yield frame
        finally:
            await response.aclose()

    def _decode_error_hook(self, ctx: LogContext):
        def _hook(line: str, exc: Exception) -> None:
            normalized_log_event(
                self._logger,
                "stream.decode_error",
                ctx,
                phase="mid_stream",
                error=str(exc),
                line=line[:200],
                level=logging.WARNING,
            )

        return _hook

    def _stream_interrupted(self, model: Optional[str]) -> ProviderConnectionError:
        return ProviderConnectionError(
            "stream ended before the terminal frame", provider=self.provider_name, model=model
        )

    async def _emit_progress(self, sink: Optional[ProgressSink], progress: PullProgress) -> None:
        if sink is None:
            return
        result = sink(progress)
        if inspect.isawaitable(result):
            await result

    def _log_failure(self, event: str, ctx: LogContext, exc: ProviderError, **fields: Any) -> None:
        normalized_log_event(
            self._logger,
            event,
            ctx,
            phase="finalize",
            error_code=exc.code.value,
            error=exc.message,
            level=logging.WARNING,
            **fields,
        )


__all__ = ["BaseLocalProvider"]

"""Ollama provider client.

Purpose:
    Implements the local-provider contract against the native Ollama HTTP API
    (default ``http://localhost:11434``): model listing, pull with progress,
    delete, chat (single shot and NDJSON streaming) and embeddings.

External dependencies:
    - ``httpx`` through the shared :class:`RetryingTransport`. No SDK or API
      key; Ollama is a local daemon.
    - ``pydantic`` wire models in :mod:`local_providers.ollama.schemas`.

Timeout strategy:
    - Every call uses the instance timeout (default 120 s); while streaming it
      bounds the wait for each body read rather than the whole stream, so
      long pulls and generations are fine as long as bytes keep arriving.
    - Status and availability probes use the short probe timeout and a
      single attempt.

Failure semantics:
    - ``{"error": ...}`` frames or bodies raise ``GenerationError``
      (``ModelNotFoundError`` when the daemon says the model is missing).
    - A stream whose body ends before the terminal frame raises
      ``ProviderConnectionError``.
"""

from __future__ import annotations

import logging
from contextlib import aclosing
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from ..base.cancellation import CancelledError
from ..base.errors import GenerationError, ProviderError
from ..base.interfaces import ProgressSink
from ..base.logging import normalized_log_event
from ..base.models import ChatOptions, ChatResponse, ModelInfo, ProviderStatus, StreamChunk
from ..base.provider_base import BaseLocalProvider
from ..base.streaming.decoders import Frame, FrameDecoder, NDJSONDecoder
from ..base.timeouts import get_timeout_config
from ..config.defaults import OLLAMA_DEFAULT_HOST, OLLAMA_DEFAULT_TIMEOUT_SECONDS
from .helpers import (
    PullProgressTracker,
    build_chat_payload,
    chat_response_from_frame,
    chunk_from_frame,
    error_from_frame,
    parse_chat_frame,
    parse_tags,
)
from .schemas import EmbedResponse, PullFrame, TagsResponse, VersionResponse

PULL_SUCCESS_STATUS = "success"


class OllamaProvider(BaseLocalProvider):
    """Client for a native Ollama daemon."""

    PROVIDER_NAME = "ollama"
    CONFIG_KEY = "ollama"
    DEFAULT_BASE_URL = OLLAMA_DEFAULT_HOST
    DEFAULT_TIMEOUT_SECONDS = OLLAMA_DEFAULT_TIMEOUT_SECONDS
    PROBE_PATH = "/api/version"

    # ---- model management ------------------------------------------------
    async def list_models(self) -> List[ModelInfo]:
        """Return installed models from ``GET /api/tags``."""
        with self._requests.track("list_models") as entry:
            ctx = self._ctx("list_models", request_id=entry.request_id)
            data = await self._request_json("GET", "/api/tags", token=entry.token, ctx=ctx)
            try:
                return parse_tags(data)
            except ValidationError as exc:
                raise GenerationError("malformed /api/tags body", provider=self.provider_name, raw=exc) from exc

    async def pull_model(
        self,
        name: str,
        on_progress: Optional[ProgressSink] = None,
        *,
        request_id: Optional[str] = None,
    ) -> None:
        """Download ``name``, reporting each NDJSON progress frame to ``on_progress``.

        Returns once the daemon reports ``success``. Cancellation raises
        ``CancelledError``; the daemon may keep the partial layers.
        """
        name = self._require_name(name, "model")
        with self._requests.track("pull", request_id) as entry:
            ctx = self._ctx("pull", name, entry.request_id)
            normalized_log_event(self._logger, "pull.start", ctx, phase="start")
            tracker = PullProgressTracker()
            decoder = NDJSONDecoder(on_error=self._decode_error_hook(ctx))
            frames = self._stream_frames(
                "POST",
                "/api/pull",
                {"model": name, "name": name, "stream": True},
                decoder,
                token=entry.token,
                model=name,
                ctx=ctx,
            )
            events = 0
            try:
                async with aclosing(frames):
                    async for raw in frames:
                        try:
                            frame = PullFrame.model_validate(raw)
                        except ValidationError as exc:
                            self._decode_error_hook(ctx)(str(raw), exc)
                            continue
                        if frame.error:
                            raise error_from_frame(frame.error, provider=self.provider_name, model=name)
                        entry.token.raise_if_cancelled()
                        events += 1
                        await self._emit_progress(on_progress, tracker.progress(frame))
                        if frame.status == PULL_SUCCESS_STATUS:
                            normalized_log_event(self._logger, "pull.end", ctx, phase="finalize", emitted=events)
                            return
                raise self._stream_interrupted(name)
            except CancelledError:
                normalized_log_event(self._logger, "pull.cancelled", ctx, phase="finalize", emitted=events)
                raise
            except ProviderError as exc:
                self._log_failure("pull.error", ctx, exc, emitted=events)
                raise

    async def delete_model(self, name: str) -> None:
        """Remove ``name`` via ``DELETE /api/delete``; unknown models raise ``ModelNotFoundError``."""
        name = self._require_name(name, "model")
        with self._requests.track("delete") as entry:
            ctx = self._ctx("delete", name, entry.request_id)
            await self._request_json(
                "DELETE", "/api/delete", json={"model": name, "name": name}, token=entry.token, model=name, ctx=ctx
            )
            normalized_log_event(self._logger, "delete.end", ctx, phase="finalize", emitted=True)

    # ---- status ------------------------------------------------------------
    async def _fetch_status(self) -> ProviderStatus:
        probe = get_timeout_config().probe_timeout_seconds
        version = VersionResponse.model_validate(
            await self._request_json("GET", "/api/version", timeout=probe, max_attempts=1) or {}
        ).version
        models = parse_tags(await self._request_json("GET", "/api/tags", timeout=probe, max_attempts=1))
        return ProviderStatus(
            running=True,
            version=version,
            loaded_model=await self._loaded_model(probe),
            models_count=len(models),
        )

    async def _loaded_model(self, probe: float) -> Optional[str]:
        """Name of the first model resident in memory (``/api/ps``); best effort."""
        try:
            data = await self._request_json("GET", "/api/ps", timeout=probe, max_attempts=1)
            running = TagsResponse.model_validate(data or {}).models
        except (ProviderError, ValidationError) as exc:
            normalized_log_event(
                self._logger,
                "status.loaded_model_unavailable",
                self._ctx("status"),
                phase="status",
                error=str(exc),
                level=logging.DEBUG,
            )
            return None
        return running[0].name if running else None

    # ---- chat / embeddings hooks ------------------------------------------
    def _chat_request(self, options: ChatOptions, *, stream: bool) -> Tuple[str, Dict[str, Any]]:
        return "/api/chat", build_chat_payload(options, stream=stream)

    def _parse_chat_response(self, data: Any, options: ChatOptions) -> ChatResponse:
        frame = parse_chat_frame(data)
        if frame is None:
            raise GenerationError("malformed /api/chat body", provider=self.provider_name, model=options.model)
        if frame.error:
            raise error_from_frame(frame.error, provider=self.provider_name, model=options.model)
        return chat_response_from_frame(frame, options.model)

    def _new_decoder(self, ctx) -> FrameDecoder:
        return NDJSONDecoder(on_error=self._decode_error_hook(ctx))

    def _chunk_from_frame(self, frame: Frame, options: ChatOptions) -> Optional[StreamChunk]:
        parsed = parse_chat_frame(frame)
        if parsed is None:
            self._decode_error_hook(self._ctx("chat_stream", options.model))(
                str(frame), ValueError("frame does not match the chat schema")
            )
            return None
        if parsed.error:
            raise error_from_frame(parsed.error, provider=self.provider_name, model=options.model)
        return chunk_from_frame(parsed, options.model)

    def _end_of_stream(self, options: ChatOptions, decoder: FrameDecoder) -> StreamChunk:
        raise self._stream_interrupted(options.model)

    def _embed_request(self, text: str, model: str) -> Tuple[str, Dict[str, Any]]:
        return "/api/embed", {"model": model, "input": text}

    def _parse_embedding(self, data: Any, model: str) -> List[float]:
        if isinstance(data, dict) and data.get("error"):
            raise error_from_frame(str(data["error"]), provider=self.provider_name, model=model)
        try:
            body = EmbedResponse.model_validate(data or {})
        except ValidationError as exc:
            raise GenerationError("malformed /api/embed body", provider=self.provider_name, model=model, raw=exc) from exc
        vector = body.embeddings[0] if body.embeddings else body.embedding
        if not vector:
            raise GenerationError("backend returned no embedding", provider=self.provider_name, model=model)
        return list(vector)


__all__ = ["OllamaProvider"]

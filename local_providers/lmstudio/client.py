"""LM Studio (OpenAI-compatible) provider client.

Purpose:
    Implements the local-provider contract against an OpenAI-compatible local
    server (LM Studio by default, ``http://localhost:1234/v1``): model listing,
    chat completions (single shot and ``data:`` event streaming) and
    embeddings.

Capability gaps:
    - The protocol has no model download or removal. ``pull_model`` and
      ``delete_model`` raise ``InvalidRequestError`` before any network I/O so
      callers can branch on the capability.

Streaming:
    - A frame with a finish reason yields the terminal chunk; nothing after it
      is read. When the ``[DONE]`` sentinel arrives without a finish reason a
      terminal chunk (finish reason ``stop``, zero usage) is synthesized.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from ..base.errors import GenerationError
from ..base.interfaces import ProgressSink
from ..base.models import ChatOptions, ChatResponse, ModelInfo, ProviderStatus, StreamChunk, TokenUsage
from ..base.provider_base import BaseLocalProvider
from ..base.streaming.decoders import EventStreamDecoder, Frame, FrameDecoder
from ..base.timeouts import get_timeout_config
from ..config.defaults import LMSTUDIO_DEFAULT_BASE_URL, LMSTUDIO_DEFAULT_TIMEOUT_SECONDS
from .helpers import (
    build_chat_payload,
    chat_response_from_completion,
    chunk_from_completion_chunk,
    frame_error_message,
    parse_models,
)
from .schemas import ChatCompletion, ChatCompletionChunk, EmbeddingsResponse


class LMStudioProvider(BaseLocalProvider):
    """Client for an OpenAI-compatible local server."""

    PROVIDER_NAME = "lm-studio"
    CONFIG_KEY = "lmstudio"
    DEFAULT_BASE_URL = LMSTUDIO_DEFAULT_BASE_URL
    DEFAULT_TIMEOUT_SECONDS = LMSTUDIO_DEFAULT_TIMEOUT_SECONDS
    PROBE_PATH = "/models"

    async def list_models(self) -> List[ModelInfo]:
        """Return the models the server exposes (``GET /models``)."""
        with self._requests.track("list_models") as entry:
            ctx = self._ctx("list_models", request_id=entry.request_id)
            data = await self._request_json("GET", "/models", token=entry.token, ctx=ctx)
            try:
                return parse_models(data)
            except ValidationError as exc:
                raise GenerationError("malformed /models body", provider=self.provider_name, raw=exc) from exc

    async def pull_model(
        self,
        name: str,
        on_progress: Optional[ProgressSink] = None,
        *,
        request_id: Optional[str] = None,
    ) -> None:
        """Unsupported: raises ``InvalidRequestError`` without touching the network."""
        raise self._unsupported("pull_model", model=name)

    async def delete_model(self, name: str) -> None:
        """Unsupported: raises ``InvalidRequestError`` without touching the network."""
        raise self._unsupported("delete_model", model=name)

    async def _fetch_status(self) -> ProviderStatus:
        probe = get_timeout_config().probe_timeout_seconds
        models = parse_models(await self._request_json("GET", "/models", timeout=probe, max_attempts=1))
        return ProviderStatus(
            running=True,
            version=None,
            loaded_model=models[0].name if models else None,
            models_count=len(models),
        )

    # ---- chat / embeddings hooks ------------------------------------------
    def _chat_request(self, options: ChatOptions, *, stream: bool) -> Tuple[str, Dict[str, Any]]:
        return "/chat/completions", build_chat_payload(options, stream=stream)

    def _parse_chat_response(self, data: Any, options: ChatOptions) -> ChatResponse:
        try:
            body = ChatCompletion.model_validate(data or {})
        except ValidationError as exc:
            raise GenerationError(
                "malformed /chat/completions body", provider=self.provider_name, model=options.model, raw=exc
            ) from exc
        response = chat_response_from_completion(body, options.model)
        if response is None:
            raise GenerationError("completion carried no choices", provider=self.provider_name, model=options.model)
        return response

    def _new_decoder(self, ctx) -> FrameDecoder:
        return EventStreamDecoder(on_error=self._decode_error_hook(ctx))

    def _chunk_from_frame(self, frame: Frame, options: ChatOptions) -> Optional[StreamChunk]:
        try:
            parsed = ChatCompletionChunk.model_validate(frame)
        except ValidationError as exc:
            self._decode_error_hook(self._ctx("chat_stream", options.model))(str(frame), exc)
            return None
        if parsed.error:
            raise GenerationError(
                frame_error_message(parsed.error), provider=self.provider_name, model=options.model
            )
        return chunk_from_completion_chunk(parsed, options.model)

    def _end_of_stream(self, options: ChatOptions, decoder: FrameDecoder) -> StreamChunk:
        if not decoder.finished:
            raise self._stream_interrupted(options.model)
        return StreamChunk(delta="", done=True, model=options.model, finish_reason="stop", usage=TokenUsage())

    def _embed_request(self, text: str, model: str) -> Tuple[str, Dict[str, Any]]:
        return "/embeddings", {"model": model, "input": text}

    def _parse_embedding(self, data: Any, model: str) -> List[float]:
        try:
            body = EmbeddingsResponse.model_validate(data or {})
        except ValidationError as exc:
            raise GenerationError("malformed /embeddings body", provider=self.provider_name, model=model, raw=exc) from exc
        if not body.data or not body.data[0].embedding:
            raise GenerationError("backend returned no embedding", provider=self.provider_name, model=model)
        return list(body.data[0].embedding)


__all__ = ["LMStudioProvider"]

"""Ollama helpers module.

Purpose:
- Side-effect-free mapping between the native wire format
  (:mod:`local_providers.ollama.schemas`) and the provider-agnostic types,
  keeping ``client.py`` focused on call orchestration.

Failure semantics:
- Frames that are valid JSON but do not match the schema are reported as
  malformed (``None`` is returned) so the stream can skip them.
- Frames carrying ``error`` are turned into typed errors by
  :func:`error_from_frame`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..base.errors import GenerationError, ModelNotFoundError, ProviderError
from ..base.models import (
    ChatMessage,
    ChatOptions,
    ChatResponse,
    ModelDetails,
    ModelInfo,
    PullProgress,
    StreamChunk,
    TokenUsage,
    normalize_finish_reason,
)
from .schemas import ChatFrame, PullFrame, TagModel, TagsResponse

_NOT_FOUND_MARKERS = ("not found", "does not exist", "no such model")


def build_chat_payload(options: ChatOptions, *, stream: bool) -> Dict[str, Any]:
    """Construct the JSON payload for ``POST /api/chat``.

    Sampling parameters go under ``options`` using Ollama's names
    (``max_tokens`` becomes ``num_predict``); unset values are omitted.
    """
    payload: Dict[str, Any] = {
        "model": options.model,
        "messages": [m.to_dict() for m in options.messages],
        "stream": stream,
    }
    sampling: Dict[str, Any] = {}
    if options.temperature is not None:
        sampling["temperature"] = options.temperature
    if options.top_p is not None:
        sampling["top_p"] = options.top_p
    if options.top_k is not None:
        sampling["top_k"] = options.top_k
    if options.max_tokens is not None:
        sampling["num_predict"] = options.max_tokens
    if options.stop:
        sampling["stop"] = list(options.stop)
    if sampling:
        payload["options"] = sampling
    return payload


def model_info_from_tag(tag: TagModel) -> ModelInfo:
    """Map one ``/api/tags`` entry verbatim onto :class:`ModelInfo`."""
    details = None
    if tag.details is not None:
        details = ModelDetails(
            family=tag.details.family,
            parameter_size=tag.details.parameter_size,
            quantization_level=tag.details.quantization_level,
            format=tag.details.format,
        )
    return ModelInfo(
        name=tag.name,
        model=tag.model or tag.name,
        size=tag.size,
        digest=tag.digest,
        modified_at=tag.modified_at,
        details=details,
    )


def parse_tags(data: Any) -> List[ModelInfo]:
    """Parse a ``/api/tags`` body; raises ``ValidationError`` on a malformed body."""
    return [model_info_from_tag(t) for t in TagsResponse.model_validate(data or {}).models]


def usage_from_frame(frame: ChatFrame) -> TokenUsage:
    return TokenUsage(prompt=frame.prompt_eval_count or 0, completion=frame.eval_count or 0)


def parse_chat_frame(data: Any) -> Optional[ChatFrame]:
    """Validate one chat frame; ``None`` when it does not match the schema."""
    try:
        return ChatFrame.model_validate(data)
    except ValidationError:
        return None


def chat_response_from_frame(frame: ChatFrame, fallback_model: str) -> ChatResponse:
    """Build the single-shot :class:`ChatResponse` from a complete body."""
    text = frame.message.content if frame.message else ""
    return ChatResponse(
        text=text,
        model=frame.model or fallback_model,
        usage=usage_from_frame(frame),
        finish_reason=normalize_finish_reason(frame.done_reason),
        message=ChatMessage(role="assistant", content=text),
    )


def chunk_from_frame(frame: ChatFrame, fallback_model: str) -> StreamChunk:
    """Map one stream frame to exactly one chunk; usage only on the terminal frame."""
    delta = frame.message.content if frame.message else ""
    model = frame.model or fallback_model
    if not frame.done:
        return StreamChunk(delta=delta, done=False, model=model)
    return StreamChunk(
        delta=delta,
        done=True,
        model=model,
        finish_reason=normalize_finish_reason(frame.done_reason),
        usage=usage_from_frame(frame),
    )


def error_from_frame(message: str, *, provider: str, model: Optional[str]) -> ProviderError:
    """Typed error for an in-band ``{"error": ...}`` frame or body."""
    lowered = message.lower()
    if any(marker in lowered for marker in _NOT_FOUND_MARKERS):
        return ModelNotFoundError(message, provider=provider, model=model)
    return GenerationError(message, provider=provider, model=model)


class PullProgressTracker:
    """Turn raw pull frames into :class:`PullProgress` events.

    ``completed`` never decreases for a given digest within one pull, even
    when the daemon restarts a layer download and reports a smaller value.
    """

    def __init__(self) -> None:
        self._completed: Dict[str, int] = {}

    def progress(self, frame: PullFrame) -> PullProgress:
        completed = frame.completed or 0
        total = frame.total or 0
        if frame.digest:
            completed = max(completed, self._completed.get(frame.digest, 0))
            self._completed[frame.digest] = completed
        return PullProgress(status=frame.status, completed=completed, total=total, digest=frame.digest)


__all__ = [
    "build_chat_payload",
    "model_info_from_tag",
    "parse_tags",
    "parse_chat_frame",
    "usage_from_frame",
    "chat_response_from_frame",
    "chunk_from_frame",
    "error_from_frame",
    "PullProgressTracker",
]

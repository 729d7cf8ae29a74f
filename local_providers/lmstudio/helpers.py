"""LM Studio helpers: OpenAI-compatible payloads and response mapping."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..base.models import (
    ChatMessage,
    ChatOptions,
    ChatResponse,
    ModelInfo,
    StreamChunk,
    TokenUsage,
    normalize_finish_reason,
)
from .schemas import ChatCompletion, ChatCompletionChunk, ModelsResponse, Usage

DEFAULT_IMAGE_MIME = "image/png"


def image_url(image: str) -> str:
    """Return ``image`` as a data URL; raw base64 is assumed to be PNG."""
    if image.startswith("data:") or "://" in image:
        return image
    return f"data:{DEFAULT_IMAGE_MIME};base64,{image}"


def message_to_wire(message: ChatMessage) -> Dict[str, Any]:
    """Plain string content, or a content-part list when images are attached."""
    if not message.images:
        return {"role": message.role, "content": message.content}
    parts: List[Dict[str, Any]] = [{"type": "text", "text": message.content}]
    parts.extend({"type": "image_url", "image_url": {"url": image_url(img)}} for img in message.images)
    return {"role": message.role, "content": parts}


def build_chat_payload(options: ChatOptions, *, stream: bool) -> Dict[str, Any]:
    """Construct the JSON payload for ``POST /chat/completions``."""
    payload: Dict[str, Any] = {
        "model": options.model,
        "messages": [message_to_wire(m) for m in options.messages],
        "stream": stream,
    }
    payload.update(options.sampling())
    return payload


def parse_models(data: Any) -> List[ModelInfo]:
    """Parse a ``/models`` body; the backend reports ids only."""
    return [ModelInfo(name=m.id, model=m.id) for m in ModelsResponse.model_validate(data or {}).data]


def usage_from_wire(usage: Optional[Usage]) -> TokenUsage:
    if usage is None:
        return TokenUsage()
    return TokenUsage(prompt=usage.prompt_tokens or 0, completion=usage.completion_tokens or 0)


def chat_response_from_completion(body: ChatCompletion, fallback_model: str) -> Optional[ChatResponse]:
    """Map a single-shot completion; ``None`` when it carries no choice."""
    if not body.choices:
        return None
    choice = body.choices[0]
    text = (choice.message.content if choice.message else None) or ""
    return ChatResponse(
        text=text,
        model=body.model or fallback_model,
        usage=usage_from_wire(body.usage),
        finish_reason=normalize_finish_reason(choice.finish_reason),
        message=ChatMessage(role="assistant", content=text),
    )


def chunk_from_completion_chunk(frame: ChatCompletionChunk, fallback_model: str) -> Optional[StreamChunk]:
    """Map one streamed frame; frames without choices (keep-alives) map to ``None``."""
    if not frame.choices:
        return None
    choice = frame.choices[0]
    delta = (choice.delta.content if choice.delta else None) or ""
    model = frame.model or fallback_model
    if choice.finish_reason is None:
        return StreamChunk(delta=delta, done=False, model=model)
    return StreamChunk(
        delta=delta,
        done=True,
        model=model,
        finish_reason=normalize_finish_reason(choice.finish_reason),
        usage=usage_from_wire(frame.usage),
    )


def frame_error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)


__all__ = [
    "image_url",
    "message_to_wire",
    "build_chat_payload",
    "parse_models",
    "usage_from_wire",
    "chat_response_from_completion",
    "chunk_from_completion_chunk",
    "frame_error_message",
]

"""
ChatResponse and TokenUsage DTOs representing a completed chat round trip.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

from .message import ChatMessage

FinishReason = Literal["stop", "length"]


def normalize_finish_reason(raw: Optional[str]) -> FinishReason:
    """Map a backend finish/done reason onto ``stop`` or ``length``."""
    if raw and raw.strip().lower() in {"length", "max_tokens", "max_length"}:
        return "length"
    return "stop"


@dataclass(frozen=True)
class TokenUsage:
    """Token accounting for one call; ``total`` is always ``prompt + completion``."""

    prompt: int = 0
    completion: int = 0

    @property
    def total(self) -> int:
        return self.prompt + self.completion

    def to_dict(self) -> Dict[str, int]:
        return {"prompt": self.prompt, "completion": self.completion, "total": self.total}


@dataclass(frozen=True)
class ChatResponse:
    """Provider-agnostic response from a single chat round trip.

    Attributes:
        text: Final assistant text.
        model: Model id the backend used.
        usage: :class:`TokenUsage`.
        finish_reason: ``"stop"`` or ``"length"``.
        message: The assistant message, ready to append to the history.
    """

    text: str
    model: str
    usage: TokenUsage
    finish_reason: FinishReason
    message: ChatMessage

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable dictionary representation."""
        return {
            "text": self.text,
            "model": self.model,
            "usage": self.usage.to_dict(),
            "finish_reason": self.finish_reason,
            "message": self.message.to_dict(),
        }


__all__ = [
    "FinishReason",
    "TokenUsage",
    "ChatResponse",
    "normalize_finish_reason",
]

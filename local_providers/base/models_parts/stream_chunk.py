"""
StreamChunk DTO: one incremental piece of a streamed chat.

A chat stream is a finite, non-restartable sequence of chunks ending with
exactly one chunk whose ``done`` flag is set. Only that terminal chunk may
carry ``finish_reason`` and ``usage``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .chat_response import FinishReason, TokenUsage


@dataclass(frozen=True)
class StreamChunk:
    delta: str
    done: bool
    model: str
    finish_reason: Optional[FinishReason] = None
    usage: Optional[TokenUsage] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "delta": self.delta,
            "done": self.done,
            "model": self.model,
            "finish_reason": self.finish_reason,
            "usage": self.usage.to_dict() if self.usage else None,
        }


__all__ = ["StreamChunk"]

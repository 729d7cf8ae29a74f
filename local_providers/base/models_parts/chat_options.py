"""
ChatOptions DTO for provider-agnostic chat invocations.

Clients map this request shape onto their wire protocol. Sampling values are
passed through untouched: the backend is the authority that rejects
malformed values.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

from .message import ChatMessage


@dataclass(frozen=True)
class ChatOptions:
    """Chat request sent to a local provider.

    Attributes:
        model: Target model identifier.
        messages: Ordered conversation history.
        temperature: Sampling temperature.
        top_p: Nucleus sampling mass.
        top_k: Top-k sampling cutoff.
        max_tokens: Maximum tokens to generate.
        stop: Stop sequences.
    """

    model: str
    messages: Sequence[ChatMessage]
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    max_tokens: Optional[int] = None
    stop: Tuple[str, ...] = field(default_factory=tuple)

    def sampling(self) -> Dict[str, Any]:
        """Return the sampling parameters that were set, keyed by field name."""
        values = {
            "temperature": self.temperature,
            "top_p": self.top_p,
            "top_k": self.top_k,
            "max_tokens": self.max_tokens,
            "stop": list(self.stop) if self.stop else None,
        }
        return {k: v for k, v in values.items() if v is not None}


__all__ = [
    "ChatOptions",
]
